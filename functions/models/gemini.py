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

import logging
from google import genai
from google.genai import types

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
QUERY_RESPONSE_MAX_OUTPUT_TOKENS = 1000


class GeminiInvalidResponseException(Exception):
    pass


def create_client(api_key: str | None) -> genai.Client:
    """Builds a Gemini client. Meant to be called once per process."""
    if not api_key:
        logger.error("GEMINI_API_KEY is not configured.")
    return genai.Client(api_key=api_key)


def call_predict(
    client: genai.Client,
    query: str,
    model: str = DEFAULT_MODEL,
) -> str:
    response = client.models.generate_content(
        model=model,
        contents=query,
        config=types.GenerateContentConfig(
            temperature=0, max_output_tokens=QUERY_RESPONSE_MAX_OUTPUT_TOKENS
        ),
    )
    if not response.text:
        raise GeminiInvalidResponseException("Gemini returned an empty response.")
    return response.text
