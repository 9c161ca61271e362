#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List, Optional

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tomato_app.config.loader import ConfigLoader
from tomato_app.config.validation import ConfigValidator, ValidationError


def validate_config_dir(config_dir: Optional[str] = None) -> List[ValidationError]:
    """Validate the merged configuration for a config directory."""
    loader = ConfigLoader.create(config_dir)
    config = loader.merge_config()
    return ConfigValidator.validate_config(config)


def main():
    """Main validation function."""
    config_dir = sys.argv[1] if len(sys.argv) > 1 else None
    loader = ConfigLoader.create(config_dir)
    print(f"🔍 Validating Tomato Clock configuration in {loader.config_dir}...")

    all_valid = True

    try:
        errors = validate_config_dir(config_dir)

        if errors:
            print(f"❌ Found {len(errors)} validation errors:")
            for error in errors:
                print(f"  • {error.field}: {error.message} (value: {error.value})")
            all_valid = False
        else:
            print("✅ tomato.yaml configuration is valid")

    except Exception as e:
        print(f"❌ Error reading configuration: {e}")
        all_valid = False

    # Settings a user could send through UpdateSettings
    print("\n📋 Testing timer setting bounds...")
    samples = [
        {"work_minutes": 25, "short_break_minutes": 5, "long_break_minutes": 15},
        {"work_minutes": 60, "short_break_minutes": 30, "long_break_minutes": 60},
        {"work_minutes": 1, "short_break_minutes": 1, "long_break_minutes": 1},
    ]

    for sample in samples:
        errors = ConfigValidator.validate_timer_settings(sample)
        if errors:
            print(f"❌ {sample} rejected:")
            for error in errors:
                print(f"  • {error.field}: {error.message}")
            all_valid = False
        else:
            print(f"✅ {sample} accepted")

    if all_valid:
        print("\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print("\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
