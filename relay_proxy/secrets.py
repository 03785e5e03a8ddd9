from __future__ import annotations

import json
import logging
import os
from typing import Dict, Optional

logger = logging.getLogger("relay-proxy.secrets")


def _resolve_project_id(project_id: Optional[str]) -> str:
    project_id = project_id or os.environ.get("GCP_PROJECT") or os.environ.get("GOOGLE_CLOUD_PROJECT")
    if not project_id:
        raise ValueError(
            "Project ID not specified. Set GCP_PROJECT_ID, GCP_PROJECT or GOOGLE_CLOUD_PROJECT."
        )
    return project_id


def get_secret_from_manager(secret_name: str, project_id: Optional[str] = None) -> str:
    """
    Fetch the latest version of a secret from Google Cloud Secret Manager.

    Raises:
        ImportError: google-cloud-secret-manager is not installed.
        ValueError: no project ID could be determined.
    """
    try:
        from google.cloud import secretmanager
    except ImportError:
        logger.warning(
            "google-cloud-secret-manager not installed. "
            "Install it with: pip install 'relay-proxy[gcp]'"
        )
        raise

    name = f"projects/{_resolve_project_id(project_id)}/secrets/{secret_name}/versions/latest"
    logger.info(f"Fetching secret from Secret Manager: {secret_name}")
    client = secretmanager.SecretManagerServiceClient()
    response = client.access_secret_version(request={"name": name})
    return response.payload.data.decode("UTF-8")


def load_secret_as_dict(secret_name: str, project_id: Optional[str] = None) -> Dict[str, str]:
    """Load a JSON object secret, e.g. ``{"PERPLEXITY_API_KEY": "..."}``."""
    payload = get_secret_from_manager(secret_name, project_id)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse secret {secret_name} as JSON: {e}")
        raise ValueError(f"Secret {secret_name} is not valid JSON") from e
    if not isinstance(data, dict):
        raise ValueError(f"Secret {secret_name} must be a JSON object")
    return data


def should_use_secret_manager() -> bool:
    """True if USE_SECRET_MANAGER is "true", "1" or "yes" (case-insensitive)."""
    return os.environ.get("USE_SECRET_MANAGER", "").lower() in ("true", "1", "yes")
