import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from head_motion.configs.app import AppSettings
from head_motion.core.state import SessionSnapshot
from head_motion.factories import create_manager, create_session_sinks
from head_motion.models import GestureEvent
from head_motion.pipeline import SinkForwarder

logger = logging.getLogger("main")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="head_motion",
        description="Runs the head motion pipeline against the simulated headset.",
    )
    parser.add_argument("--duration", type=float, default=20.0, help="Seconds to run before stopping.")
    parser.add_argument(
        "--calibrate",
        action="store_true",
        help="Zero the head pose on the first samples of the session.",
    )
    return parser.parse_args(argv)


def _log_event(event: GestureEvent) -> None:
    logger.info(f"{event.kind.description} at t={event.timestamp:.2f}s (confidence {event.confidence:.2f})")


def _log_state(snapshot: SessionSnapshot) -> None:
    message = f"State: {snapshot.update_state.name} / {snapshot.connection.name}"
    if snapshot.error is not None:
        message += f" - {snapshot.error.message}"
    logger.debug(message)


async def run(settings: AppSettings, duration: float, calibrate: bool) -> None:
    manager = create_manager(settings)
    manager.events.subscribe(_log_event)
    manager.states.subscribe(_log_state)

    forwarder = None
    forwarder_task = None
    sinks = create_session_sinks(settings)
    if sinks:
        forwarder = SinkForwarder(sinks)
        forwarder.attach(manager.samples)
        forwarder.attach(manager.events)
        forwarder_task = asyncio.create_task(forwarder.run())

    try:
        if not await manager.start():
            logger.warning("Motion updates did not start; retries may still recover the session.")

        if calibrate:
            await asyncio.sleep(settings.session.start_grace_s)
            manager.calibrate_zero_position()

        await asyncio.sleep(duration)
    finally:
        await manager.close()
        if forwarder is not None:
            await forwarder.stop()
            await forwarder_task

    stats = manager.processor.stats
    logger.info(
        f"Processed {stats.total_processed_samples} samples "
        f"(avg {stats.formatted_average_time}, max {stats.formatted_max_time})."
    )
    counts = manager.session_stats.event_counts
    for kind, count in counts.items():
        logger.info(f"{kind.description}: {count}")


def main(argv=None):
    args = parse_args(argv)

    # 1. Load Configuration
    try:
        settings = AppSettings()
    except ValidationError as e:
        print(f"Configuration Error: {e}")
        sys.exit(1)

    # 2. Setup Logging
    logging.basicConfig(
        level=settings.logging.level,
        format=settings.logging.format,
        stream=sys.stdout
    )
    logger.info(f"Starting Head Motion v{settings.__version__}")

    # 3. Run the pipeline
    try:
        asyncio.run(run(settings, args.duration, args.calibrate))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    except Exception:
        logger.exception("Fatal Application Error")
        sys.exit(1)


if __name__ == "__main__":
    main()
