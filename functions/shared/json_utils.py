# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""Helpers for moving between Python (snake_case) and client (camelCase) keys."""

import re
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def camel_to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def snake_to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def convert_keys(data: Any, mode: str) -> Any:
    """
    Recursively converts dictionary keys.

    Args:
        data: A dict, list, or scalar. Only dict keys are rewritten.
        mode: Either "camel_to_snake" or "snake_to_camel".

    Returns:
        A new structure with converted keys; scalars are returned unchanged.
    """
    if mode == "camel_to_snake":
        convert = camel_to_snake
    elif mode == "snake_to_camel":
        convert = snake_to_camel
    else:
        raise ValueError(f"Unknown key conversion mode: {mode}")

    if isinstance(data, dict):
        return {
            convert(k) if isinstance(k, str) else k: convert_keys(v, mode)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [convert_keys(item, mode) for item in data]
    return data
