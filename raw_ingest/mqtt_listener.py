import json
import logging

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)


def start_mqtt_listener(
    callback,
    broker: str,
    port: int,
    topic: str,
    client: mqtt.Client | None = None,
):
    """
    Telemetry MQTT Listener
    -----------------------
    Expected topic:
        telemetry/raw/{site}/{device}
        telemetry/raw/{device}

    Callback signature:
        callback(device_id: str, payload: dict)

    Blocks in loop_forever().
    """

    client = client or mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
    client.on_connect = _make_on_connect(broker, port, topic)
    client.on_message = _make_on_message(callback)

    client.connect(broker, port, keepalive=60)
    client.loop_forever()


def _make_on_connect(broker, port, topic):
    def on_connect(client, userdata, flags, reason_code, properties=None):
        if reason_code == 0:
            logger.info("[MQTT] Connected to %s:%s", broker, port)
            client.subscribe(topic)
            logger.info("[MQTT] Subscribed to: %s", topic)
        else:
            logger.error("[MQTT] Connection failed with code %s", reason_code)

    return on_connect


def _make_on_message(callback):
    def on_message(client, userdata, msg):
        try:
            payload = json.loads(msg.payload.decode("utf-8"))
            device_id = _parse_topic(msg.topic)

            callback(device_id=device_id, payload=payload)

        except Exception:
            logger.exception("[MQTT] Message processing error on %s", msg.topic)

    return on_message


# =========================================================
# TOPIC PARSER
# =========================================================
def _parse_topic(topic: str) -> str:
    """
    Multi-site:
        telemetry/raw/<SITE>/<DEVICE>   -> "<SITE>/<DEVICE>"

    Single-site:
        telemetry/raw/<DEVICE>          -> "<DEVICE>"
    """

    parts = topic.split("/")

    if len(parts) == 4:
        _, _, site, device = parts
        return f"{site}/{device}"

    elif len(parts) == 3:
        _, _, device = parts
        return device

    else:
        raise ValueError(f"Invalid telemetry topic format: {topic}")
