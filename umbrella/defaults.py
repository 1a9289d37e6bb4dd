"""Built-in workspace configuration.

Workspace files under ``config/`` are deep-merged over this mapping, so a
workspace only needs to spell out what differs. Lists (``packages``,
``command``) replace the default wholesale.
"""
from __future__ import annotations

from typing import Any, Dict


DEFAULT_CONFIGURATION: Dict[str, Any] = {
    "global": {
        "log_level": "info",
        "log_file": None,
    },
    "workspace": {
        "packages_dir": "ockam",
        "packages": [
            "ockly",
            "ockam",
            "ockam_abac",
            "ockam_services",
            "ockam_kafka",
            "ockam_metrics",
            "ockam_healthcheck",
            "ockam_cloud_node",
            "ockam_typed_cbor",
        ],
        "shared_dirs": ["_build", "_deps"],
        "profile_variable": "MIX_ENV",
        "build_root_variable": "MIX_BUILD_ROOT",
        "build_root": "../_build",
    },
    "tools": {
        "hex": {"command": ["mix", "local.hex", "--force", "--if-missing"]},
        "rebar": {"command": ["mix", "local.rebar", "--force", "--if-missing"]},
    },
    "rules": {
        "fetch-dependencies": {
            "description": "Fetch dependencies",
            "command": ["mix", "deps.get"],
            "bootstrap": True,
        },
        "build": {
            "description": "Compile",
            "command": ["mix", "compile"],
            "prerequisite": "fetch-dependencies",
            "build_environment": True,
        },
        "build-release": {
            "description": "Compile for release",
            "command": ["mix", "compile"],
            "prerequisite": "fetch-dependencies",
            "build_environment": True,
            "profile": "prod",
        },
        "test": {
            "description": "Run tests",
            "command": ["mix", "test"],
            "prerequisite": "build",
            "build_environment": True,
        },
        "lint": {
            "description": "Lint",
            "command": ["mix", "lint"],
            "prerequisite": "build",
            "build_environment": True,
            "profile": "test",
        },
        "clean": {
            "description": "Clean build outputs",
            "command": ["mix", "clean"],
        },
        "deep-clean": {
            "description": "Remove dependencies and build outputs",
            "command": ["rm", "-rf", "deps", "_build"],
        },
    },
    "delegate": {
        "name": "rust",
        "command": ["make", "-C", "../rust", "very_clean"],
        "cwd": ".",
    },
}


__all__ = ["DEFAULT_CONFIGURATION"]
