"""Write a configuration file from command-line answers."""

from __future__ import annotations

import sys
from argparse import Namespace

from f007th_push import config as config_module
from f007th_push.config import PushConfig
from f007th_push.config_layering import cli_overrides_from_args, load_layered_config
from f007th_push.errors import ConfigurationError


def run_setup(args: Namespace) -> int:
    """Validate the requested settings and persist them as TOML."""
    config_path = config_module.resolve_config_path(getattr(args, "config", None))

    if getattr(args, "reset", False) and config_path.exists() and not getattr(args, "dry_run", False):
        config_path.unlink()
        print(f"Removed existing configuration at {config_path}")

    try:
        # an existing file at the target path is the base being edited
        merged = load_layered_config(config_path, cli_overrides_from_args(args))
        push_config = PushConfig.from_dict(merged)
        push_config.validate()
    except ConfigurationError as exc:
        print(f"ERROR: {exc}.", file=sys.stderr)
        return 2

    if getattr(args, "dry_run", False):
        print("Dry run: configuration not written")
        print(config_module.config_summary(push_config))
        return 0

    saved = config_module.save_config(push_config, config_path)
    print(f"Configuration written to {saved}")
    print(config_module.config_summary(push_config))
    return 0
