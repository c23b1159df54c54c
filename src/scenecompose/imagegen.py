"""Generative image client — text-to-image and image editing predictions.

Talks to a hosted prediction API: create a prediction, then poll its
status URL until it reaches a terminal state. The caller only ever sees
one resolved image URL per call (or an APIError). There is no retry or
backoff here; a failed call fails the operation that made it.

Requires the REPLICATE_API_TOKEN environment variable.
"""

import logging
import os
import time
from typing import Callable

import requests

from .errors import APIError


logger = logging.getLogger(__name__)

PREDICTIONS_URL = "https://api.replicate.com/v1/models/google/nano-banana/predictions"
TOKEN_ENV_VAR = "REPLICATE_API_TOKEN"

POLL_INTERVAL_S = 1.0
REQUEST_TIMEOUT_S = 30

TERMINAL_FAILURE_STATUSES = {"failed", "canceled"}

# (prompt, input_images, aspect_ratio, output_format) -> image URL
ImageGenerator = Callable[[str, list[str] | None, str | None, str | None], str]


def _auth_headers() -> dict[str, str]:
    token = os.environ.get(TOKEN_ENV_VAR)
    if not token:
        raise APIError(f"{TOKEN_ENV_VAR} environment variable is not set")
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {token}",
    }


def _json_or_raise(response: requests.Response, what: str) -> dict:
    if not response.ok:
        raise APIError(f"{what} error: {response.status_code} - {response.text}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise APIError(f"{what} returned non-JSON body") from exc
    if not isinstance(payload, dict):
        raise APIError(f"{what} returned unexpected payload: {payload!r}")
    return payload


def run_prediction(
    prompt: str,
    input_images: list[str] | None = None,
    aspect_ratio: str | None = None,
    output_format: str | None = None,
) -> dict:
    """Create a prediction and block until it succeeds or fails.

    Returns:
        The final prediction payload (status "succeeded").

    Raises:
        APIError: Missing token, HTTP failure, or a failed prediction.
    """
    headers = _auth_headers()
    payload = {"input": {"prompt": prompt}}
    if input_images:
        payload["input"]["input_images"] = input_images
    if aspect_ratio:
        payload["input"]["aspect_ratio"] = aspect_ratio
    if output_format:
        payload["input"]["output_format"] = output_format

    try:
        response = requests.post(
            PREDICTIONS_URL, json=payload, headers=headers, timeout=REQUEST_TIMEOUT_S,
        )
        prediction = _json_or_raise(response, "Prediction create")

        while prediction.get("status") not in {"succeeded", *TERMINAL_FAILURE_STATUSES}:
            poll_url = (prediction.get("urls") or {}).get("get")
            if not poll_url:
                raise APIError("Prediction response has no polling URL")
            time.sleep(POLL_INTERVAL_S)
            response = requests.get(poll_url, headers=headers, timeout=REQUEST_TIMEOUT_S)
            prediction = _json_or_raise(response, "Prediction poll")
    except requests.RequestException as exc:
        raise APIError(f"Image service request failed: {exc}") from exc

    if prediction["status"] in TERMINAL_FAILURE_STATUSES:
        detail = prediction.get("error") or prediction["status"]
        raise APIError(f"Image prediction {prediction['status']}: {detail}")

    logger.info("Prediction %s succeeded", prediction.get("id"))
    return prediction


def extract_image_url(prediction: dict) -> str:
    """Output is either a URL string or a list whose first item is the URL."""
    output = prediction.get("output")
    if isinstance(output, list) and output and isinstance(output[0], str):
        return output[0]
    if isinstance(output, str):
        return output
    raise APIError(f"Unexpected prediction output format: {output!r}")


def generate_image(
    prompt: str,
    input_images: list[str] | None = None,
    aspect_ratio: str | None = None,
    output_format: str | None = None,
) -> str:
    """Run one prediction and return the resulting image URL."""
    prediction = run_prediction(prompt, input_images, aspect_ratio, output_format)
    return extract_image_url(prediction)
