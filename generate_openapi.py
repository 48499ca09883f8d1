#!/usr/bin/env python3
"""
Generate OpenAPI schema from FastAPI application.

This script exports the OpenAPI schema of the Storycast API to openapi.json
for use by the frontend client.

Usage:
    python generate_openapi.py
"""

import json
import sys
from pathlib import Path

# Add src directory to path to import the app
sys.path.insert(0, str(Path(__file__).parent / "src"))

try:
    from storycast.api.factory import create_app
    from storycast.api.settings import Settings
except ImportError as e:
    print(f"Error importing FastAPI app: {e}")
    print("Make sure you have installed the dependencies:")
    print("  pip install -e .")
    sys.exit(1)


def generate_openapi_schema():
    """Generate and save OpenAPI schema to openapi.json."""
    try:
        # Schema generation never calls upstream services, so no credentials are needed
        app = create_app(Settings(_env_file=None))
        openapi_schema = app.openapi()

        output_path = Path(__file__).parent / "openapi.json"

        with open(output_path, "w") as f:
            json.dump(openapi_schema, f, indent=2)

        print(f"✅ OpenAPI schema exported to {output_path}")
        print(f"   Total endpoints: {len(openapi_schema.get('paths', {}))}")
        print(f"   API version: {openapi_schema.get('info', {}).get('version', 'unknown')}")

    except Exception as e:
        print(f"❌ Error generating OpenAPI schema: {e}")
        sys.exit(1)


if __name__ == "__main__":
    generate_openapi_schema()
