#!/usr/bin/env python3
"""Configuration validation script."""

import os
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from arcgent_app.config.loader import ConfigLoader
from arcgent_app.config.validation import ConfigValidator
from arcgent_app.errors import ConfigurationError


def main():
    """Main validation function."""
    print("🔍 Validating Arcgent configuration...")

    loader = ConfigLoader.create(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"📁 Config directory: {loader.config_dir}")

    merged = loader.merge_config(os.environ)
    errors = ConfigValidator.validate_config(merged)
    if errors:
        print(f"❌ Found {len(errors)} validation errors:")
        for error in errors:
            print(f"  • {error.field}: {error.message} (value: {error.value})")
        sys.exit(1)

    try:
        config = loader.load(os.environ)
    except ConfigurationError as e:
        print(f"❌ {e}")
        sys.exit(1)

    if config.provider.url:
        print(f"✅ Provider endpoint: {config.provider.url} (model: {config.provider.model})")
    else:
        print("⚠️  No provider endpoint configured; /api/generate will report an error")

    print(f"📋 Stability profile: {config.generation.default_stability_profile or 'unset'}"
          f" (force strict: {config.generation.force_strict}, auto-repair: {config.generation.auto_repair})")
    print(f"🚦 Generate limit: {config.generate_rate_limit.max_requests}"
          f" per {config.generate_rate_limit.window_seconds:g}s")
    print(f"🚦 Surprise limit: {config.surprise_rate_limit.max_requests}"
          f" per {config.surprise_rate_limit.window_seconds:g}s")
    print(f"🌐 CORS origins: {', '.join(config.guard.cors_allowed_origins)}")

    print("\n🎉 Configuration validation passed!")
    sys.exit(0)


if __name__ == "__main__":
    main()
