"""
Google API Authentication Service

Handles authentication for the Google Slides and Sheets APIs.

Two credential sources are supported, checked in order:
- A service account key at GOOGLE_APPLICATION_CREDENTIALS, optionally
  impersonating GOOGLE_IMPERSONATE_USER (domain-wide delegation)
- The OAuth2 installed-app flow using services/auth/credentials.json
"""

import os
from pathlib import Path
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from google.auth.transport.requests import Request
from googleapiclient.discovery import build

# Scopes required for deck and chart editing
SCOPES = [
    "https://www.googleapis.com/auth/presentations",
    "https://www.googleapis.com/auth/spreadsheets",
]

# Get the auth folder path (services/auth/)
AUTH_DIR = Path(__file__).parent / "auth"
TOKEN_PATH = AUTH_DIR / "token.json"
CLIENT_SECRET = AUTH_DIR / "credentials.json"


def _service_account_credentials(creds_path: str):
    if not Path(creds_path).exists():
        raise FileNotFoundError(f"Service account key not found: {creds_path}")

    creds = service_account.Credentials.from_service_account_file(creds_path, scopes=SCOPES)

    user_email = os.getenv("GOOGLE_IMPERSONATE_USER")
    if user_email:
        creds = creds.with_subject(user_email)
    return creds


def _oauth_credentials():
    creds = None

    # Load existing credentials if available
    if TOKEN_PATH.exists():
        creds = Credentials.from_authorized_user_file(str(TOKEN_PATH), SCOPES)

    # Refresh or create new credentials
    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            if not CLIENT_SECRET.exists():
                raise FileNotFoundError(
                    f"Missing '{CLIENT_SECRET}'. Download from Google Cloud Console "
                    f"and place in {AUTH_DIR}/, or set GOOGLE_APPLICATION_CREDENTIALS"
                )
            flow = InstalledAppFlow.from_client_secrets_file(str(CLIENT_SECRET), SCOPES)
            creds = flow.run_local_server(port=0)

        # Save credentials for future use
        AUTH_DIR.mkdir(parents=True, exist_ok=True)
        with open(TOKEN_PATH, "w") as f:
            f.write(creds.to_json())

    return creds


def get_google_services():
    """
    Authenticate and return Google API service clients.

    Returns:
        tuple: (slides_service, sheets_service)
            - slides_service: Google Slides API client
            - sheets_service: Google Sheets API client

    Raises:
        FileNotFoundError: If no usable credentials are configured
    """
    creds_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    if creds_path:
        creds = _service_account_credentials(creds_path)
    else:
        creds = _oauth_credentials()

    slides_service = build("slides", "v1", credentials=creds)
    sheets_service = build("sheets", "v4", credentials=creds)

    return slides_service, sheets_service
