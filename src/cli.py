"""CLI entry point for Lightsync."""

import argparse
import asyncio
import sys
from pathlib import Path

EXAMPLE_CONFIG = """\
# Lightsync Configuration

# Seconds between state polls (clamped to 5-60, default 15)
polling_interval: 15

# Seconds to wait for a lamp to answer a single request
transport_timeout: 5

log_level: INFO

# Run 'lightsync models' to list supported models
# Run 'lightsync probe <ip> <token>' to check a lamp before adding it
devices: []
  # - name: Bedside Lamp
  #   ip: 192.168.1.50
  #   token: 0123456789abcdef0123456789abcdef
  #   model: yeelink.light.bslamp2
"""


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="lightsync",
        description="Lightsync - keep Yeelight lamps in sync with your bridge",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the sync service")
    serve_parser.add_argument(
        "--config-dir",
        type=str,
        help="Path to config directory",
    )

    # probe command
    probe_parser = subparsers.add_parser("probe", help="Check a lamp's address and token")
    probe_parser.add_argument("ip", type=str, help="Lamp IP address")
    probe_parser.add_argument("token", type=str, help="32 character hex token")
    probe_parser.add_argument(
        "--model",
        type=str,
        default="yeelink.light.color3",
        help="Model identifier (default: yeelink.light.color3)",
    )
    probe_parser.add_argument(
        "--timeout",
        type=float,
        default=5.0,
        help="Request timeout in seconds (default: 5)",
    )

    # models command
    subparsers.add_parser("models", help="List supported lamp models")

    # config command
    config_parser = subparsers.add_parser("config", help="Configuration utilities")
    config_subparsers = config_parser.add_subparsers(dest="config_action", help="Config action")

    # config validate
    validate_parser = config_subparsers.add_parser("validate", help="Validate configuration")
    validate_parser.add_argument(
        "--config-dir",
        type=str,
        help="Path to config directory",
    )

    # config init
    init_parser = config_subparsers.add_parser("init", help="Create an example config file")
    init_parser.add_argument(
        "--config-dir",
        type=str,
        default="./config",
        help="Path to config directory (default: ./config)",
    )

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "serve":
        from main import main as serve_main
        config_dir = Path(args.config_dir) if args.config_dir else None
        asyncio.run(serve_main(config_dir))

    elif args.command == "probe":
        ok = asyncio.run(probe(args.ip, args.token, args.model, args.timeout))
        sys.exit(0 if ok else 1)

    elif args.command == "models":
        list_models()

    elif args.command == "config":
        if args.config_action is None:
            config_parser.print_help()
            sys.exit(1)
        ok = run_config_command(args)
        sys.exit(0 if ok else 1)


async def probe(ip: str, token: str, model: str, timeout: float) -> bool:
    """Connect to a lamp, print its state, and report whether it answered."""
    from pydantic import ValidationError

    from config import DeviceConfig
    from devices import YeelightDevice, build_default_registry, miio_connector
    from utils.errors import LightsyncError

    try:
        device_config = DeviceConfig(name=ip, ip=ip, token=token, model=model)
        descriptor = build_default_registry().get(model)
    except ValidationError as e:
        for error in e.errors():
            print(f"Error: {error['loc'][0]}: {error['msg']}")
        return False
    except LightsyncError as e:
        print(f"Error: {e}")
        return False

    print(f"\nTesting {descriptor.name} at {ip}...")
    print("-" * 40)

    device = YeelightDevice(
        descriptor,
        device_config.ip,
        device_config.token,
        connector=miio_connector(timeout),
    )
    try:
        await device.connect()
        print("✓ Connected\n")
        state = await device.fetch_state()
    except LightsyncError as e:
        print(f"✗ {e}")
        print("\nCheck that the lamp is powered, on the same network, and the token is current.")
        return False
    finally:
        device.disconnect()

    print("Device State:")
    print("-" * 40)
    print(f"  Power:       {'on' if state.power else 'off'}")
    print(f"  Brightness:  {state.brightness}%")
    print(f"  Color Temp:  {state.color_temp}K")
    print(f"  Hue:         {state.hue}°")
    print(f"  Saturation:  {state.saturation}%")
    print(f"  Color Mode:  {state.color_mode.value}")
    return True


def list_models() -> None:
    """Print every supported model with its capabilities."""
    from devices import YEELIGHT_MODELS

    for descriptor in YEELIGHT_MODELS:
        caps = descriptor.capabilities
        features = [
            name
            for name, enabled in (
                ("power", caps.power),
                ("brightness", caps.brightness),
                ("color temperature", caps.color_temperature),
                ("color", caps.color),
            )
            if enabled
        ]
        print(f"{descriptor.model:<24} {descriptor.name} ({', '.join(features)})")


def run_config_command(args: argparse.Namespace) -> bool:
    """Run config commands."""
    if args.config_action == "validate":
        return validate_config(args.config_dir)

    if args.config_action == "init":
        return init_config(args.config_dir)

    return False


def validate_config(config_dir: str | None = None) -> bool:
    """Validate the config file and each device entry.

    Returns:
        True if valid, False otherwise
    """
    from config import find_config_dir, load_config
    from devices import build_default_registry
    from devices.manager import DeviceManager
    from utils.errors import ConfigurationError

    cfg_path = Path(config_dir) if config_dir else find_config_dir()
    print(f"Validating configuration in: {cfg_path}")
    print()

    config_file = cfg_path / "config.yaml"
    if not config_file.exists():
        print(f"✗ config.yaml not found at {config_file}")
        return False

    try:
        config = load_config(cfg_path)
    except Exception as e:
        print(f"✗ config.yaml is invalid: {e}")
        return False

    print("✓ config.yaml is valid YAML")
    print(f"  Devices: {len(config.devices)}")

    registry = build_default_registry()
    manager = DeviceManager(config, registry)
    errors = 0
    for raw in config.devices:
        try:
            device_config = manager.validate_device_config(raw)
            registry.get(device_config.model)
        except ConfigurationError as e:
            errors += 1
            print(f"✗ {e}")
            continue
        print(f"✓ {device_config.name} ({device_config.model} at {device_config.ip})")

    print()
    if errors:
        print(f"{errors} device(s) will be skipped at start-up")
        return False
    print("Configuration is valid")
    return True


def init_config(config_dir: str) -> bool:
    """Write an example config.yaml unless one already exists."""
    cfg_path = Path(config_dir)
    cfg_path.mkdir(parents=True, exist_ok=True)

    config_file = cfg_path / "config.yaml"
    if config_file.exists():
        print(f"config.yaml already exists at {config_file}, not overwriting")
        return False

    config_file.write_text(EXAMPLE_CONFIG)
    print(f"Created {config_file}")
    return True


if __name__ == "__main__":
    main()
