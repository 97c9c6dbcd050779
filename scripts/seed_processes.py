#!/usr/bin/env python3
"""Seed the process store with generated sample processes.

Processes are generated by replaying real stage transitions and checklist
operations, then written to the backend selected by configuration
(``CRM_STORE_BACKEND``) or by ``--backend``. Optionally every generated
process is also streamed to Kafka as a ``process.seeded`` event.
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from prime_crm.config import STORE_BACKENDS, CrmConfig, StoreConfig
from prime_crm.events import make_event
from prime_crm.exceptions import CrmError
from prime_crm.generators import ProcessGenerator
from prime_crm.logging import setup_logging
from prime_crm.metrics import compute_metrics
from prime_crm.sinks.kafka import KafkaSender
from prime_crm.sinks.serialization import process_to_dict
from prime_crm.store import ProcessRepository, create_store
from prime_crm.values import format_money_br

logger = logging.getLogger(__name__)


def seed(
    store: ProcessRepository,
    count: int,
    seed_value: int | None = None,
    attendant_ids: list[str] | None = None,
    sender: KafkaSender | None = None,
) -> list:
    """Generate ``count`` processes and write them to ``store``.

    Parameters
    ----------
    store : ProcessRepository
        Destination store.
    count : int
        Number of processes.
    seed_value : int | None
        Random seed for reproducibility.
    attendant_ids : list[str] | None
        Attendants the processes are spread across.
    sender : KafkaSender | None
        When given, each process is also published as an event.

    Returns
    -------
    list[Process]
        The stored processes.
    """
    generator = ProcessGenerator(seed=seed_value, attendant_ids=attendant_ids)
    created = []
    for process in generator.generate_batch(count):
        stored = store.create_process(process)
        created.append(stored)
        if sender is not None:
            sender.publish_event(
                make_event("process.seeded", stored.id, process_to_dict(stored), "seed-script")
            )
    logger.info("Seeded %d processes", len(created))
    return created


def print_summary(processes: list) -> None:
    """Print a board summary of the seeded processes."""
    metrics = compute_metrics(processes)
    print(f"\n{'='*60}")
    print("Seed Summary")
    print("=" * 60)
    print(f"  Total processes: {metrics.total}")
    for stage_id, stage_count in metrics.by_stage.items():
        print(f"  {stage_id.value}: {stage_count}")
    print(f"  Pending: {metrics.pending}")
    print(f"  Pipeline value: R$ {format_money_br(metrics.total_value)}")
    print("  Opened per month: " + ", ".join(f"{m.name}={m.value}" for m in metrics.monthly_volume))


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed the process store with sample data")
    parser.add_argument(
        "--count",
        type=int,
        default=50,
        help="Number of processes to generate (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: SEED env var)",
    )
    parser.add_argument(
        "--backend",
        type=str,
        choices=list(STORE_BACKENDS),
        default=None,
        help="Store backend (default: CRM_STORE_BACKEND env var)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory for the json backend",
    )
    parser.add_argument(
        "--attendants",
        type=str,
        default="attendant-1,attendant-2",
        help="Comma-separated attendant ids",
    )
    parser.add_argument(
        "--publish-events",
        action="store_true",
        help="Also stream seeded processes to Kafka",
    )
    parser.add_argument(
        "--no-summary",
        action="store_true",
        help="Do not print the board summary",
    )
    args = parser.parse_args(argv)

    try:
        config = CrmConfig.from_env()
        if args.backend or args.data_dir:
            config = replace(
                config,
                store=StoreConfig(
                    backend=args.backend or config.store.backend,
                    data_dir=args.data_dir or config.store.data_dir,
                ),
            )
        setup_logging(config.log_level, config.log_format)

        if args.count < 0:
            parser.error("--count must not be negative")

        store = create_store(config)
        sender = KafkaSender(config.kafka) if args.publish_events else None
        attendants = [a.strip() for a in args.attendants.split(",") if a.strip()]
        seed_value = args.seed if args.seed is not None else config.seed
        try:
            processes = seed(store, args.count, seed_value, attendants or None, sender)
        finally:
            if sender is not None:
                sender.close()
            store.close()
    except CrmError as e:
        logger.error("Seeding failed: %s", e)
        return 1

    if not args.no_summary:
        print_summary(processes)
    return 0


if __name__ == "__main__":
    sys.exit(main())
