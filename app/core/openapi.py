"""OpenAPI schema tweaks.

Adds the tag descriptions and declares the ``X-API-Key`` scheme, applied
to the Admin operations only: the catalog itself is public.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

ADMIN_TAG = "Admin"

TAGS_METADATA = [
    {
        "name": "Species",
        "description": "Cached, rate-limited access to the species catalog.",
    },
    {
        "name": ADMIN_TAG,
        "description": "Cache maintenance. Requires an admin X-API-Key.",
    },
    {
        "name": "Health",
        "description": "Liveness and cache store readiness.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the admin scheme.

    - Injects components.securitySchemes for API Key auth (header ``X-API-Key``)
    - Marks operations tagged ``Admin`` as requiring it; everything else is public
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "AdminApiKey",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Admin API key for cache maintenance endpoints.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            for method_obj in methods.values():
                if isinstance(method_obj, dict) and ADMIN_TAG in method_obj.get("tags", []):
                    method_obj["security"] = [{"AdminApiKey": []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
