"""Command-line entry point: ``python -m catpoint_alarm``."""

import argparse
import sys
from typing import List, Optional

from .alarm_system import create_alarm_controller
from .config_manager import ConfigManager
from .exceptions import AlarmControllerError
from .models.sensor import Sensor
from .models.status import ArmingStatus, SensorType
from .utils import load_image
from .logging_config import get_logger, setup_logging

ARMING_CHOICES = {
    "disarmed": ArmingStatus.DISARMED,
    "home": ArmingStatus.ARMED_HOME,
    "away": ArmingStatus.ARMED_AWAY
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catpoint_alarm",
                                     description="Home alarm controller")
    parser.add_argument("--config", default=None, help="Path to JSON configuration file")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("status", help="Show alarm, arming and sensor state")

    arm = commands.add_parser("arm", help="Change the arming mode")
    arm.add_argument("mode", choices=sorted(ARMING_CHOICES))

    add_sensor = commands.add_parser("add-sensor", help="Register a sensor")
    add_sensor.add_argument("name")
    add_sensor.add_argument("type", choices=[t.value for t in SensorType])

    remove_sensor = commands.add_parser("remove-sensor", help="Unregister a sensor")
    remove_sensor.add_argument("name")

    sensor = commands.add_parser("sensor", help="Activate or deactivate a sensor")
    sensor.add_argument("name")
    sensor.add_argument("state", choices=["on", "off"])

    image = commands.add_parser("image", help="Scan an image for a cat")
    image.add_argument("path")

    return parser


def print_status(controller) -> None:
    alarm_status = controller.get_alarm_status()
    arming_status = controller.get_arming_status()
    print(f"Alarm:   {alarm_status.name} ({alarm_status.description})")
    print(f"Arming:  {arming_status.name} ({arming_status.description})")
    print(f"Pet:     {'detected' if controller.is_pet_detected() else 'not detected'}")
    for sensor in sorted(controller.get_sensors(), key=lambda s: s.name):
        state = "active" if sensor.active else "inactive"
        print(f"Sensor:  {sensor.name} [{sensor.sensor_type.value}] {state}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the alarm controller CLI."""
    args = build_parser().parse_args(argv)

    logger = get_logger("cli")

    config_manager = ConfigManager(args.config)
    config = config_manager.get_config()
    if not config_manager.validate_config():
        logger.error(f"Invalid configuration: {config_manager.config_path}")
        return 1

    setup_logging(config.log_level, config.log_dir or None)

    try:
        controller = create_alarm_controller(config)
        store = controller.state_store

        if args.command == "arm":
            controller.set_arming_status(ARMING_CHOICES[args.mode])
        elif args.command == "add-sensor":
            store.add_sensor(Sensor(args.name, SensorType(args.type)))
        elif args.command == "remove-sensor":
            existing = store.get_sensor(args.name)
            if existing is None:
                logger.error(f"Sensor not registered: {args.name}")
                return 1
            store.remove_sensor(existing)
        elif args.command == "sensor":
            controller.change_sensor_activation_status(args.name, args.state == "on")
        elif args.command == "image":
            controller.process_image(load_image(args.path))

        print_status(controller)
        return 0

    except AlarmControllerError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
