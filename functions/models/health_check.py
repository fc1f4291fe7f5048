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

"""Connectivity check against Gemini."""

import logging

from google import genai

from models import gemini
from shared.api import HealthCheckResult, HealthStatus

logger = logging.getLogger(__name__)

HEALTH_CHECK_PROMPT = "What is your name? Respond only with the name 'Carmelita'."
EXPECTED_NAME = "Carmelita"


def check_ai_health(
    client: genai.Client, model: str = gemini.DEFAULT_MODEL
) -> HealthCheckResult:
    """
    Asks the model for its name and checks that it answers "Carmelita".

    Never raises: provider errors and unexpected answers are reported as an
    ERROR result carrying the reason.
    """
    try:
        response_text = gemini.call_predict(client, HEALTH_CHECK_PROMPT, model=model).strip()
    except Exception as e:
        logger.error(f"Gemini connection error: {e}")
        return HealthCheckResult(status=HealthStatus.ERROR, message=str(e))

    if EXPECTED_NAME not in response_text:
        logger.error(f"Unexpected Gemini health check response: {response_text!r}")
        return HealthCheckResult(
            status=HealthStatus.ERROR,
            message=f"Unexpected Gemini response: {response_text}",
        )

    return HealthCheckResult(
        status=HealthStatus.OK,
        message=f"Gemini connection succeeded. Model response: {response_text}",
    )
