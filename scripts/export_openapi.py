"""Export the OpenAPI document of the cadence API.

``--surface portal`` keeps only the customer portal routes and declares the
portal token as their security scheme. ``--surface admin`` drops them.
"""

import argparse
import json
import sys
from collections.abc import Iterator
from typing import Any

PORTAL_PREFIX = "/v1/portal"
REF_PREFIX = "#/components/schemas/"

PORTAL_SECURITY = {
    "PortalToken": {
        "type": "apiKey",
        "in": "query",
        "name": "token",
        "description": "Signed token from a customer portal link.",
    },
}


def iter_refs(node: Any) -> Iterator[str]:
    """Yield the schema names referenced anywhere under ``node``."""
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            ref = current.get("$ref")
            if isinstance(ref, str) and ref.startswith(REF_PREFIX):
                yield ref[len(REF_PREFIX):]
            stack.extend(current.values())
        elif isinstance(current, list):
            stack.extend(current)


def reachable_schemas(roots: Any, schemas: dict[str, Any]) -> dict[str, Any]:
    """Schemas referenced from ``roots``, followed transitively, sorted by name."""
    found: dict[str, Any] = {}
    pending = list(iter_refs(roots))
    while pending:
        name = pending.pop()
        if name in found or name not in schemas:
            continue
        found[name] = schemas[name]
        pending.extend(iter_refs(schemas[name]))
    return dict(sorted(found.items()))


def select_surface(document: dict[str, Any], surface: str) -> dict[str, Any]:
    if surface == "all":
        return document

    portal = surface == "portal"
    paths = {
        path: operations
        for path, operations in document.get("paths", {}).items()
        if path.startswith(PORTAL_PREFIX) == portal
    }
    schemas = document.get("components", {}).get("schemas", {})
    components: dict[str, Any] = {"schemas": reachable_schemas(paths, schemas)}
    selected = {**document, "paths": paths, "components": components}
    if portal:
        info = document.get("info", {})
        components["securitySchemes"] = PORTAL_SECURITY
        selected["security"] = [{"PortalToken": []}]
        selected["info"] = {**info, "title": f"{info.get('title', 'cadence')} portal"}
    return selected


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export the cadence OpenAPI document.")
    parser.add_argument("--surface", choices=("all", "admin", "portal"), default="all")
    parser.add_argument("--indent", type=int, default=2)
    args = parser.parse_args(argv)

    from cadence.main import app

    json.dump(select_surface(app.openapi(), args.surface), sys.stdout, indent=args.indent)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
