"""Console compass: replays a sensor log and prints each heading."""

import argparse
import asyncio

from locaty import CompassService, ConsolePresenter, HeadingNotifier, load_replay, replay_samples


async def run(path: str, speed: float, background: bool):
    last = {"direction": None}

    def show(payload):
        if payload["direction"] != last["direction"]:
            print(f"heading={payload['angle']:7.2f}  direction={payload['direction']}")
            last["direction"] = payload["direction"]

    service = CompassService(HeadingNotifier(broadcast=show, presenter=ConsolePresenter()))
    service.on_create()
    service.on_start_command(background=background)

    print("\n--- COMPASS ---")
    async for sample in replay_samples(load_replay(path), speed=speed):
        service.on_sensor_changed(sample)

    print("--- END ---")
    print("Updates emitted:", service.notifier.emit_count)


def main():
    parser = argparse.ArgumentParser(description="Replay a sensor log through the compass")
    parser.add_argument("path", help="CSV file with t,sensor,x,y,z columns")
    parser.add_argument("--speed", type=float, default=0.0, help="Replay rate, 0 = as fast as possible")
    parser.add_argument("--background", action="store_true", help="Print status notifications")
    args = parser.parse_args()

    try:
        asyncio.run(run(args.path, args.speed, args.background))
    except KeyboardInterrupt:
        print("\n--- STOP ---")


if __name__ == "__main__":
    main()
