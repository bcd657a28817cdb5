import argparse
import logging

from config.config_loader import load_engine_config
from core.errors import PayloadValidationError
from core.predictive_maintenance import PredictiveMaintenanceService
from core.sample_queue import SampleQueue
from publish.mqtt_publisher import MaintenancePublisher
from raw_ingest.mqtt_listener import start_mqtt_listener
from raw_ingest.validator import parse_baselines, parse_telemetry_payload

logger = logging.getLogger("runner")


# ==================================================
# BASELINE RESOLUTION
# ==================================================
def resolve_baselines(config: dict, device_id: str, payload_baselines=None) -> dict:
    """
    payload baselines > per-device config > default config
    """
    if payload_baselines is not None:
        return payload_baselines

    baselines_cfg = config.get("baselines", {})
    devices = baselines_cfg.get("devices") or {}

    if device_id in devices:
        return dict(devices[device_id])

    return dict(baselines_cfg.get("default") or {})


def build_on_telemetry(config, sample_queue):
    def on_telemetry(device_id, payload):
        try:
            sample = parse_telemetry_payload(payload, device_id=device_id)
            baselines = resolve_baselines(
                config, sample.device_id, parse_baselines(payload)
            )
        except PayloadValidationError as exc:
            logger.warning("Rejected telemetry from %s: %s", device_id, exc)
            return

        sample_queue.submit(sample, baselines)

    return on_telemetry


def main(argv=None):
    parser = argparse.ArgumentParser(description="Predictive maintenance engine")
    parser.add_argument("--config", help="YAML file merged over config/engine.yaml")
    args = parser.parse_args(argv)

    # =========================
    # LOAD CONFIG
    # =========================
    config = load_engine_config(args.config)

    logging.basicConfig(
        level=config.get("logging", {}).get("level", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # =========================
    # PUBLISHER
    # =========================
    publisher = MaintenancePublisher(
        broker=config["mqtt"]["broker"],
        port=config["mqtt"]["port"],
        base_topic=config["mqtt"]["base_topic"],
    )

    # =========================
    # ENGINE
    # =========================
    service = PredictiveMaintenanceService.from_config(
        config,
        on_schedule=publisher.publish_schedule,
    )

    # =========================
    # WORKERS
    # =========================
    sample_queue = SampleQueue(
        maxsize=config["queue"]["maxsize"],
        worker_count=config["queue"]["worker_count"],
        drop_policy=config["queue"]["drop_policy"],
    )

    def process_sample(sample, baselines):
        result = service.process(sample, baselines)
        publisher.publish_result(result)

    sample_queue.start(process_sample)

    # =========================
    # START MQTT LISTENER
    # =========================
    try:
        start_mqtt_listener(
            callback=build_on_telemetry(config, sample_queue),
            broker=config["mqtt"]["broker"],
            port=config["mqtt"]["port"],
            topic=config["mqtt"]["telemetry_topic"],
        )
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        sample_queue.stop()
        publisher.stop()
        logger.info("Engine status at shutdown: %s", service.get_status())


if __name__ == "__main__":
    main()
