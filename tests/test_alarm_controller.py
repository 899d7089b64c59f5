"""Unit tests for the alarm controller."""

import random
import unittest
from unittest.mock import Mock, patch
import sys
import os

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from catpoint_alarm.exceptions import (
    CollaboratorUnavailableError,
    InvalidInputError,
    SensorNotFoundError
)
from catpoint_alarm.models import AlarmStatus, ArmingStatus, Sensor, SensorType, SystemConfig
from catpoint_alarm.services.alarm_controller import AlarmController, PET_CONFIDENCE_THRESHOLD
from catpoint_alarm.services.error_handler import ErrorHandler
from catpoint_alarm.services.interfaces import AnimalClassifierInterface, StatusListener
from catpoint_alarm.services.state_store import InMemoryStateStore


class FailingAlarmWriteStore(InMemoryStateStore):
    """Store whose alarm status writes always fail."""

    def set_alarm_status(self, alarm_status):
        raise RuntimeError("disk unplugged")


class TestAlarmController(unittest.TestCase):
    """Test cases for AlarmController."""

    def setUp(self):
        """Set up test fixtures."""
        self.store = InMemoryStateStore()
        self.classifier = Mock(spec=AnimalClassifierInterface)
        self.classifier.image_contains_animal.return_value = False
        self.error_handler = ErrorHandler()
        self.controller = AlarmController(self.store, self.classifier,
                                          error_handler=self.error_handler)

        self.door = Sensor("front door", SensorType.DOOR)
        self.window = Sensor("kitchen window", SensorType.WINDOW)
        self.motion = Sensor("hallway motion", SensorType.MOTION)
        for sensor in (self.door, self.window, self.motion):
            self.store.add_sensor(sensor)

        self.image = np.zeros((630, 840, 3), dtype=np.uint8)

    def set_cat(self, present: bool):
        self.classifier.image_contains_animal.return_value = present

    def test_armed_sensor_activated_sets_pending(self):
        """Test NO_ALARM escalates to PENDING_ALARM on activation."""
        self.controller.set_arming_status(ArmingStatus.ARMED_AWAY)

        self.controller.change_sensor_activation_status(self.door, True)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.PENDING_ALARM)
        self.assertTrue(self.store.get_sensor("front door").active)
        self.assertTrue(self.door.active)

    def test_armed_sensor_activated_while_pending_sets_alarm(self):
        """Test PENDING_ALARM escalates to ALARM on activation."""
        self.controller.set_arming_status(ArmingStatus.ARMED_HOME)
        self.store.set_alarm_status(AlarmStatus.PENDING_ALARM)

        self.controller.change_sensor_activation_status(self.window, True)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)

    def test_pending_last_sensor_deactivated_returns_no_alarm(self):
        """Test PENDING_ALARM clears when the only active sensor is released."""
        self.controller.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.controller.change_sensor_activation_status(self.door, True)

        self.controller.change_sensor_activation_status(self.door, False)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)
        self.assertFalse(self.store.get_sensor("front door").active)

    def test_alarm_is_sticky_for_sensor_changes(self):
        """Test sensor activity alone never changes ALARM."""
        for current_active, requested in ((True, False), (False, True), (True, True), (False, False)):
            with self.subTest(current_active=current_active, requested=requested):
                self.store.set_arming_status(ArmingStatus.ARMED_AWAY)
                self.store.set_alarm_status(AlarmStatus.ALARM)
                self.store.update_sensor(Sensor("front door", SensorType.DOOR, current_active))

                self.controller.change_sensor_activation_status(self.door, requested)

                self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)
                self.assertEqual(self.store.get_sensor("front door").active, requested)

    def test_active_sensor_activated_again_while_pending_sets_alarm(self):
        """Test re-activating an already active sensor still escalates."""
        self.store.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.store.set_alarm_status(AlarmStatus.PENDING_ALARM)
        self.store.update_sensor(Sensor("front door", SensorType.DOOR, True))

        self.controller.change_sensor_activation_status(self.door, True)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)

    def test_inactive_sensor_deactivated_makes_no_alarm_write(self):
        """Test deactivating an inactive sensor leaves the alarm untouched."""
        self.store.set_arming_status(ArmingStatus.ARMED_AWAY)

        with patch.object(self.store, "set_alarm_status",
                          wraps=self.store.set_alarm_status) as set_alarm:
            with patch.object(self.store, "update_sensor",
                              wraps=self.store.update_sensor) as update_sensor:
                self.controller.change_sensor_activation_status(self.door, False)

        set_alarm.assert_not_called()
        update_sensor.assert_called_once()
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)

    def test_two_sensors_escalate_then_alarm_holds(self):
        """Test S activates, S again plus T activate, then S releases."""
        self.controller.set_arming_status(ArmingStatus.ARMED_HOME)

        self.controller.change_sensor_activation_status(self.door, True)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.PENDING_ALARM)

        self.controller.change_sensor_activation_status(self.door, True)
        self.controller.change_sensor_activation_status(self.window, True)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)

        self.controller.change_sensor_activation_status(self.window, False)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)

    def test_pending_with_two_active_sensors_clears_only_after_both_release(self):
        """Test one sensor's release does not mask another still tripped."""
        self.store.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.store.update_sensor(Sensor("front door", SensorType.DOOR, True))
        self.store.update_sensor(Sensor("kitchen window", SensorType.WINDOW, True))
        self.store.set_alarm_status(AlarmStatus.PENDING_ALARM)

        self.controller.change_sensor_activation_status(self.door, False)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.PENDING_ALARM)

        self.controller.change_sensor_activation_status(self.window, False)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)

    def test_sensor_sequences_never_skip_pending(self):
        """Test random sensor sequences never jump from NO_ALARM to ALARM."""
        rng = random.Random(7)
        sensors = [self.door, self.window, self.motion]

        for _ in range(20):
            self.controller.set_arming_status(ArmingStatus.ARMED_AWAY)
            self.store.set_alarm_status(AlarmStatus.NO_ALARM)
            previous = self.store.get_alarm_status()
            reached_alarm = False

            for _ in range(30):
                sensor = rng.choice(sensors)
                self.controller.change_sensor_activation_status(sensor, rng.random() < 0.5)
                current = self.store.get_alarm_status()

                self.assertFalse(previous is AlarmStatus.NO_ALARM and current is AlarmStatus.ALARM)
                if reached_alarm:
                    self.assertEqual(current, AlarmStatus.ALARM)
                reached_alarm = reached_alarm or current is AlarmStatus.ALARM
                previous = current

    def test_cat_detected_while_armed_home_sets_alarm(self):
        """Test a cat seen while armed at home raises the alarm."""
        self.store.set_arming_status(ArmingStatus.ARMED_HOME)
        self.set_cat(True)

        self.assertTrue(self.controller.process_image(self.image))

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)
        self.assertTrue(self.store.get_pet_detected())
        self.classifier.image_contains_animal.assert_called_once_with(self.image, 0.5)
        self.assertEqual(PET_CONFIDENCE_THRESHOLD, 0.5)

    def test_no_cat_and_no_active_sensor_sets_no_alarm(self):
        """Test an empty frame clears the alarm when no sensor is tripped."""
        self.store.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.store.set_alarm_status(AlarmStatus.PENDING_ALARM)

        self.assertFalse(self.controller.process_image(self.image))

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)
        self.assertFalse(self.store.get_pet_detected())

    def test_no_cat_with_active_sensor_keeps_alarm(self):
        """Test an empty frame does not clear a real sensor trip."""
        self.controller.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.controller.change_sensor_activation_status(self.motion, True)
        self.set_cat(True)
        self.controller.process_image(self.image)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)

        self.set_cat(False)
        self.controller.process_image(self.image)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)
        self.assertFalse(self.store.get_pet_detected())

    def test_cat_then_no_cat_while_armed_home(self):
        """Test ALARM from a cat clears once the cat leaves and no sensor is active."""
        self.store.set_arming_status(ArmingStatus.ARMED_HOME)

        self.set_cat(True)
        self.controller.process_image(self.image)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)
        self.assertTrue(self.store.get_pet_detected())

        self.set_cat(False)
        self.controller.process_image(self.image)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)
        self.assertFalse(self.store.get_pet_detected())

    def test_cat_detected_while_disarmed_sets_no_alarm(self):
        """Test a cat seen while disarmed records the pet but keeps NO_ALARM."""
        self.store.set_alarm_status(AlarmStatus.PENDING_ALARM)
        self.set_cat(True)

        self.controller.process_image(self.image)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)
        self.assertTrue(self.store.get_pet_detected())

    def test_process_image_is_idempotent(self):
        """Test processing the same cat twice matches processing it once."""
        self.store.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.set_cat(True)

        self.controller.process_image(self.image)
        once = (self.store.get_alarm_status(), self.store.get_pet_detected())
        self.controller.process_image(self.image)
        twice = (self.store.get_alarm_status(), self.store.get_pet_detected())

        self.assertEqual(once, (AlarmStatus.ALARM, True))
        self.assertEqual(once, twice)

    def test_disarm_always_clears_alarm(self):
        """Test disarming yields NO_ALARM from every alarm status."""
        for status in AlarmStatus:
            with self.subTest(status=status):
                self.store.set_arming_status(ArmingStatus.ARMED_AWAY)
                self.store.set_alarm_status(status)

                self.controller.set_arming_status(ArmingStatus.DISARMED)

                self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)
                self.assertEqual(self.store.get_arming_status(), ArmingStatus.DISARMED)

    def test_arming_resets_all_sensors(self):
        """Test both armed modes start from inactive sensors."""
        for mode in (ArmingStatus.ARMED_HOME, ArmingStatus.ARMED_AWAY):
            with self.subTest(mode=mode):
                for sensor in (self.door, self.window, self.motion):
                    self.store.update_sensor(Sensor(sensor.name, sensor.sensor_type, True))

                self.controller.set_arming_status(mode)

                self.assertTrue(all(not s.active for s in self.store.get_sensors()))
                self.assertEqual(self.store.get_arming_status(), mode)

    def test_arming_home_with_pet_detected_sets_alarm(self):
        """Test arming at home while a cat is already seen raises the alarm."""
        self.set_cat(True)
        self.controller.process_image(self.image)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)

        self.controller.set_arming_status(ArmingStatus.ARMED_HOME)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)

    def test_arming_away_with_pet_detected_leaves_alarm(self):
        """Test only the home mode treats a known pet as a trigger."""
        self.store.set_pet_detected(True)

        self.controller.set_arming_status(ArmingStatus.ARMED_AWAY)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)

    def test_sensor_activity_while_disarmed_is_recorded_without_escalation(self):
        """Test a disarmed system records sensor flags but keeps NO_ALARM."""
        self.controller.change_sensor_activation_status(self.door, True)

        self.assertTrue(self.store.get_sensor("front door").active)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)

    def test_escalate_while_disarmed_policy(self):
        """Test the table applies while disarmed when the policy is enabled."""
        controller = AlarmController(self.store, self.classifier,
                                     SystemConfig(escalate_while_disarmed=True),
                                     self.error_handler)

        controller.change_sensor_activation_status(self.door, True)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.PENDING_ALARM)

    def test_downgrade_alarm_on_deactivation_policy(self):
        """Test ALARM drops to PENDING_ALARM while another sensor stays active."""
        controller = AlarmController(self.store, self.classifier,
                                     SystemConfig(downgrade_alarm_on_deactivation=True),
                                     self.error_handler)
        self.store.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.store.update_sensor(Sensor("front door", SensorType.DOOR, True))
        self.store.update_sensor(Sensor("kitchen window", SensorType.WINDOW, True))
        self.store.set_alarm_status(AlarmStatus.ALARM)

        controller.change_sensor_activation_status(self.door, False)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.PENDING_ALARM)

        controller.change_sensor_activation_status(self.window, False)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)

    def test_downgrade_policy_keeps_alarm_for_last_sensor(self):
        """Test the downgrade needs another active sensor."""
        controller = AlarmController(self.store, self.classifier,
                                     SystemConfig(downgrade_alarm_on_deactivation=True),
                                     self.error_handler)
        self.store.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.store.update_sensor(Sensor("front door", SensorType.DOOR, True))
        self.store.set_alarm_status(AlarmStatus.ALARM)

        controller.change_sensor_activation_status(self.door, False)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.ALARM)

    def test_sensor_can_be_referenced_by_name(self):
        """Test sensors can be addressed by name."""
        self.controller.set_arming_status(ArmingStatus.ARMED_AWAY)

        self.controller.change_sensor_activation_status("hallway motion", True)

        self.assertTrue(self.store.get_sensor("hallway motion").active)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.PENDING_ALARM)

    def test_unknown_sensor_raises_not_found(self):
        """Test an unregistered sensor fails without touching state."""
        self.controller.set_arming_status(ArmingStatus.ARMED_AWAY)
        ghost = Sensor("garage door", SensorType.DOOR)

        with self.assertRaises(SensorNotFoundError):
            self.controller.change_sensor_activation_status(ghost, True)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)
        self.assertIsNone(self.store.get_sensor("garage door"))
        self.assertFalse(ghost.active)
        self.assertEqual(self.error_handler.get_error_stats()["component_error_counts"]["alarm_controller"], 1)

    def test_classifier_failure_writes_nothing(self):
        """Test a failing classifier surfaces as CollaboratorUnavailableError."""
        self.store.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.store.set_alarm_status(AlarmStatus.PENDING_ALARM)
        self.classifier.image_contains_animal.side_effect = RuntimeError("camera offline")

        with self.assertRaises(CollaboratorUnavailableError):
            self.controller.process_image(self.image)

        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.PENDING_ALARM)
        self.assertFalse(self.store.get_pet_detected())

    def test_store_failure_rolls_back_pet_status(self):
        """Test a failed alarm write also discards the pet-detected write."""
        store = FailingAlarmWriteStore(arming_status=ArmingStatus.ARMED_HOME)
        controller = AlarmController(store, self.classifier, error_handler=self.error_handler)
        listener = Mock(spec=StatusListener)
        controller.add_status_listener(listener)
        self.set_cat(True)

        with self.assertRaises(CollaboratorUnavailableError):
            controller.process_image(self.image)

        self.assertFalse(store.get_pet_detected())
        self.assertEqual(store.get_alarm_status(), AlarmStatus.NO_ALARM)
        listener.pet_detected.assert_not_called()
        listener.notify.assert_not_called()

    def test_alarm_writes_are_logged_with_event(self):
        """Test each alarm status write logs the event that caused it."""
        self.store.set_pet_detected(True)
        with self.assertLogs("catpoint_alarm.alarm_controller", level="INFO") as logs:
            self.controller.set_arming_status(ArmingStatus.ARMED_HOME)
            self.controller.set_arming_status(ArmingStatus.ARMED_AWAY)
            self.controller.set_arming_status(ArmingStatus.DISARMED)
            self.controller.set_arming_status(ArmingStatus.ARMED_AWAY)
            self.controller.change_sensor_activation_status(self.door, True)
            self.set_cat(True)
            self.controller.process_image(self.image)

        contexts = [r.context for r in logs.records if hasattr(r, "context")]
        self.assertEqual(
            [(c["event"], c["alarm_status"]) for c in contexts],
            [("arming", "ALARM"), ("arming", "NO_ALARM"),
             ("sensor", "PENDING_ALARM"), ("image", "ALARM")]
        )
        self.assertEqual(contexts[2]["sensor"], "front door")
        self.assertEqual(contexts[2]["previous"], "NO_ALARM")
        self.assertTrue(contexts[3]["pet_detected"])

    def test_invalid_images_are_rejected(self):
        """Test malformed images raise InvalidInputError before classification."""
        for bad_image in (None, [[0, 0], [0, 0]], np.zeros((0, 0, 3), dtype=np.uint8),
                          np.zeros(10, dtype=np.uint8)):
            with self.subTest(image=type(bad_image).__name__):
                with self.assertRaises(InvalidInputError):
                    self.controller.process_image(bad_image)

        self.classifier.image_contains_animal.assert_not_called()
        self.assertFalse(self.store.get_pet_detected())

    def test_invalid_arming_status_is_rejected(self):
        """Test arming with something other than an ArmingStatus."""
        with self.assertRaises(InvalidInputError):
            self.controller.set_arming_status("ARMED_HOME")

        self.assertEqual(self.store.get_arming_status(), ArmingStatus.DISARMED)

    def test_listeners_are_notified(self):
        """Test listeners hear about alarm, pet and sensor changes."""
        listener = Mock(spec=StatusListener)
        self.controller.add_status_listener(listener)
        self.controller.set_arming_status(ArmingStatus.ARMED_HOME)
        listener.sensor_status_changed.assert_called_once()

        self.controller.change_sensor_activation_status(self.door, True)
        listener.notify.assert_called_with(AlarmStatus.PENDING_ALARM)

        self.set_cat(True)
        self.controller.process_image(self.image)
        listener.pet_detected.assert_called_with(True)
        listener.notify.assert_called_with(AlarmStatus.ALARM)

        self.controller.remove_status_listener(listener)
        listener.reset_mock()
        self.controller.set_arming_status(ArmingStatus.DISARMED)
        listener.notify.assert_not_called()

    def test_failing_listener_does_not_block_others(self):
        """Test a raising listener is logged and skipped."""
        broken = Mock(spec=StatusListener)
        broken.notify.side_effect = RuntimeError("listener bug")
        healthy = Mock(spec=StatusListener)
        self.controller.add_status_listener(broken)
        self.controller.add_status_listener(healthy)

        self.controller.set_arming_status(ArmingStatus.DISARMED)

        healthy.notify.assert_called_once_with(AlarmStatus.NO_ALARM)
        self.assertEqual(self.store.get_alarm_status(), AlarmStatus.NO_ALARM)

    def test_read_accessors(self):
        """Test read accessors pass through to the store."""
        self.store.set_pet_detected(True)

        self.assertEqual(self.controller.get_alarm_status(), AlarmStatus.NO_ALARM)
        self.assertEqual(self.controller.get_arming_status(), ArmingStatus.DISARMED)
        self.assertTrue(self.controller.is_pet_detected())
        self.assertEqual({s.name for s in self.controller.get_sensors()},
                         {"front door", "kitchen window", "hallway motion"})


if __name__ == '__main__':
    unittest.main()
