import json
import logging

import paho.mqtt.client as mqtt

from core.telemetry import MaintenanceSchedule, ProcessResult

logger = logging.getLogger(__name__)


class MaintenancePublisher:
    """
    MQTT Publisher

    Responsibility:
    - Publish engine outputs as flat JSON
    - NO engine logic, called after process() returns
    """

    def __init__(self, broker=None, port=1883, base_topic="maintenance", client=None):
        self.base_topic = base_topic

        if client is None:
            client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
            client.connect(broker, port)
            client.loop_start()

        self.client = client

    # =========================================================
    # INTERNAL
    # =========================================================
    def _publish(self, topic, payload, qos=1, retain=False):
        self.client.publish(
            topic,
            json.dumps(payload),
            qos=qos,
            retain=retain,
        )

    # =========================================================
    # PER SAMPLE
    # =========================================================
    def publish_result(self, result: ProcessResult):
        device = result.anomaly.device_id

        self._publish(f"{self.base_topic}/anomaly/{device}", result.anomaly.to_dict())
        self._publish(f"{self.base_topic}/health/{device}", result.health.to_dict())

        if result.prediction is not None:
            self._publish(
                f"{self.base_topic}/prediction/{device}",
                result.prediction.to_dict(),
            )

    # =========================================================
    # SCHEDULE EVENTS
    # =========================================================
    def publish_schedule(self, schedule: MaintenanceSchedule):
        """
        Retained: a work-order consumer joining late still sees the
        latest window for the device.
        """
        topic = f"{self.base_topic}/schedule/{schedule.device_id}"
        self._publish(topic, schedule.to_dict(), retain=True)
        logger.info("Published schedule %s to %s", schedule.id, topic)

    # =========================================================
    # SHUTDOWN
    # =========================================================
    def stop(self):
        self.client.loop_stop()
        self.client.disconnect()
