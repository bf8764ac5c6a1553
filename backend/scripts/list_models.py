"""List the Gemini models available to the configured API key.

Handy when the proxy reports that a model name is unknown.

Usage:
    cd backend
    uv run python scripts/list_models.py
"""

from google import genai
from google.genai import errors

from stillwaters.core.config import settings

if not settings.has_gemini_credential:
    print("No Gemini API key found. Set STILLWATERS_GEMINI_API_KEY in backend/.env.")
    raise SystemExit(1)

client = genai.Client(api_key=settings.gemini_api_key)

try:
    models = list(client.models.list())
except errors.APIError as e:
    print(f"Error listing models: {e}")
    raise SystemExit(1)

print("Available Models:")
for model in models:
    actions = ", ".join(model.supported_actions or [])
    print(f"- {model.name} ({actions})")

print(f"\nConfigured model: {settings.gemini_model}")
