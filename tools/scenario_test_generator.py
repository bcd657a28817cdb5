import argparse
import json
import time

import numpy as np
import paho.mqtt.publish as publish

# ==========================================================
# MQTT CONFIG
# ==========================================================
BROKER = "localhost"
PORT = 1883

# ==========================================================
# DEVICE TOPOLOGY (metric -> healthy baseline)
# ==========================================================
TOPOLOGY = {
    "SITE_A": {
        "PUMP_01": {"flow_rate": 120.0, "pressure": 6.0, "efficiency": 92.0},
        "PUMP_02": {"flow_rate": 110.0, "pressure": 5.5, "efficiency": 90.0},
    },
    "SITE_B": {
        "COMP_01": {"output_kw": 45.0, "efficiency": 88.0},
    },
}

NOISE_RATIO = 0.01

# ==========================================================
# SCENARIO PHASES (phase, degradation ratio at phase end, samples)
# ==========================================================
SCENARIO = [
    ("NORMAL", 0.0, 30),
    ("DEGRADING", 0.15, 30),
    ("CRITICAL", 0.28, 20),
    ("RECOVERY", 0.02, 20),
]


def scenario_ratios(scenario=SCENARIO):
    """
    Degradation ratio for every sample, ramping linearly
    from the previous phase level to the phase target.
    """
    level = 0.0
    for phase, target, duration in scenario:
        for ratio in np.linspace(level, target, duration, endpoint=True):
            yield phase, float(ratio)
        level = target


def build_payload(device_id, baselines, ratio, rng):
    metrics = {}
    for metric, baseline in baselines.items():
        value = baseline * (1.0 - ratio)
        value += NOISE_RATIO * baseline * rng.standard_normal()
        metrics[metric] = round(float(value), 4)

    return {
        "device_id": device_id,
        "timestamp": time.time(),
        "metrics": metrics,
        "baselines": baselines,
    }


# ==========================================================
# MAIN
# ==========================================================
def main(argv=None):
    parser = argparse.ArgumentParser(description="Publish a degradation scenario")
    parser.add_argument("--broker", default=BROKER)
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--interval", type=float, default=0.5)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args(argv)

    rng = np.random.default_rng(args.seed)

    print("Degradation scenario started")

    for phase, ratio in scenario_ratios():
        for site, devices in TOPOLOGY.items():
            for device, baselines in devices.items():
                device_id = f"{site}/{device}"
                payload = build_payload(device_id, baselines, ratio, rng)
                topic = f"telemetry/raw/{site}/{device}"

                publish.single(
                    topic,
                    json.dumps(payload),
                    hostname=args.broker,
                    port=args.port,
                )

                print(f"TX {topic} | phase={phase} | ratio={ratio:.3f}")

        time.sleep(args.interval)


if __name__ == "__main__":
    main()
