"""Command-line interface for the planboard scheduling engine."""

import argparse
import logging
import sys
from datetime import date, timedelta
from typing import Optional

from planboard.domain.calendar import WorkCalendar
from planboard.domain.errors import AllocationRequestError, InvalidProfileError
from planboard.domain.learning_curve import CurveCatalog, create_standard_catalog
from planboard.domain.models import (
    AllocationRequest,
    ProductionOrder,
    SchedulableResource,
)
from planboard.output.pdf_generator import PDFGenerator
from planboard.output.report_generator import ReportGenerator
from planboard.planning.board import PlanningBoard
from planboard.scheduling.allocator import (
    AllocatorConfig,
    CapacityAllocator,
    FlatRateMode,
)
from planboard.scheduling.projector import LearningCurveProjector
from planboard.validation.validator import PlanValidator


def parse_date(value: str) -> date:
    """Parse an ISO date argument."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}")


def next_working_day(day: date, calendar: WorkCalendar) -> date:
    while calendar.is_blocked_date(day):
        day += timedelta(days=1)
    return day


def create_sample_lines(count: int = 4) -> list[SchedulableResource]:
    """Create sample sewing lines with varied capacity."""
    capacities = [250, 400, 600, 300, 500, 350]
    return [
        SchedulableResource(
            resource_id=f"L{i + 1:02d}",
            name=f"Line {i + 1}",
            daily_capacity=capacities[i % len(capacities)],
        )
        for i in range(count)
    ]


def create_sample_orders(count: int, catalog: CurveCatalog) -> list[ProductionOrder]:
    """Create sample orders cycling through styles and learning curves."""
    styles = [
        ("TEE-BASIC", "lc-simple-tee"),
        ("JKT-QUILT", "lc-complex-jacket"),
        ("POLO-PK", "lc-standard-polo"),
        ("CAP-TWILL", "lc-very-fast"),
        ("DRS-WRAP", "lc-moderate-dress"),
        ("SHORT-CHINO", None),
    ]
    quantities = [1200, 800, 2500, 3000, 1500, 900, 600, 2000]

    orders = []
    for i in range(count):
        style, curve_id = styles[i % len(styles)]
        if curve_id is not None and curve_id not in catalog:
            curve_id = None
        orders.append(
            ProductionOrder(
                order_id=f"PO-{1001 + i}",
                style=style,
                quantity=quantities[i % len(quantities)],
                learning_curve_id=curve_id,
            )
        )
    return orders


def run_curves() -> None:
    """List the standard learning curves."""
    catalog = create_standard_catalog()
    projector = LearningCurveProjector()

    for profile in catalog:
        peak = projector.output_at(profile, profile.max_efficiency_percent)
        print(f"{profile.profile_id} - {profile.name} ({profile.curve_type.value})")
        print(f"  SMV: {profile.standard_minute_value}, operators: {profile.operator_count}, "
              f"minutes/day: {profile.working_minutes_per_day_per_operator}")
        ramp = ", ".join(
            f"d{p.threshold:g}:{p.efficiency_percent:g}%" for p in profile.points
        )
        print(f"  Ramp: {ramp}")
        print(f"  Plateau output: {peak} units/day")
        if profile.description:
            print(f"  {profile.description}")
        print()


def run_project(curve_id: str, days: int, start: date) -> int:
    """Print the daily projection of a learning curve."""
    catalog = create_standard_catalog()
    profile = catalog.get(curve_id)
    if profile is None:
        print(f"Unknown learning curve: {curve_id}", file=sys.stderr)
        return 1

    try:
        projections = LearningCurveProjector().project(profile, days, start)
    except InvalidProfileError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(f"Projection for {profile.name} from {start}")
    print(f"{'Date':<12} {'Eff %':>7} {'Output':>8}")
    for projection in projections:
        print(f"{projection.day.isoformat():<12} {projection.efficiency_percent:>7.1f} "
              f"{projection.theoretical_output_units:>8}")
    return 0


def run_allocate(
    quantity: int,
    start: date,
    deadline: date,
    ceiling: Optional[float],
    curve_id: Optional[str],
    mode: str,
    rate: Optional[int],
) -> int:
    """Allocate a single order and print the daily plan."""
    catalog = create_standard_catalog()
    profile = catalog.get(curve_id)
    if curve_id and profile is None:
        print(f"Unknown learning curve: {curve_id}", file=sys.stderr)
        return 1

    allocator = CapacityAllocator(
        AllocatorConfig(flat_rate_mode=FlatRateMode(mode), default_daily_rate=rate)
    )
    request = AllocationRequest(
        quantity_to_allocate=quantity,
        start_date=start,
        hard_deadline_date=deadline,
        resource_daily_capacity_ceiling=ceiling,
    )

    try:
        result = allocator.allocate(request, profile)
    except AllocationRequestError as exc:
        print(f"Invalid request: {exc}", file=sys.stderr)
        return 1

    print(ReportGenerator().format_allocation(result, f"Allocation of {quantity} units"))

    validation = PlanValidator().validate_allocation(result, request)
    if validation.is_valid:
        print("\nValidation: PASSED")
    else:
        print(f"\nValidation: FAILED ({len(validation.errors)} errors)")
        for error in validation.errors[:5]:
            print(f"    - {error}")

    if result.segments and result.remaining_quantity:
        print(f"\nPartially scheduled: {result.remaining_quantity} units remain")
    elif not result.segments and quantity > 0:
        print("\nCould not be scheduled in this window")
    return 0


def run_demo(
    line_count: int = 4,
    order_count: int = 8,
    output_path: Optional[str] = None,
    report_path: Optional[str] = None,
) -> None:
    """Build a sample board by dropping orders onto lines."""
    print(f"Planning {order_count} orders on {line_count} lines...")

    catalog = create_standard_catalog()
    calendar = WorkCalendar()
    lines = create_sample_lines(line_count)
    orders = create_sample_orders(order_count, catalog)

    board = PlanningBoard(resources=lines, catalog=catalog, is_blocked_date=calendar)

    start = next_working_day(date.today(), calendar)
    for i, order in enumerate(orders):
        line = lines[i % len(lines)]
        # Stagger drops so some bookings overlap on the same line
        drop_day = next_working_day(start + timedelta(days=(i // len(lines)) * 2), calendar)
        placement = board.schedule_order(order, line.resource_id, drop_day)
        if not placement.is_placed:
            print(f"  {order.order_id}: could not be scheduled on {line.name}")

    report = ReportGenerator()
    print()
    print(report.generate_to_string(board))

    validation = PlanValidator().validate_board(board)
    if validation.is_valid:
        print("\nValidation: PASSED")
    else:
        print(f"\nValidation: FAILED ({len(validation.errors)} errors)")
        for error in validation.errors[:5]:
            print(f"    - {error}")
        if len(validation.errors) > 5:
            print(f"    ... and {len(validation.errors) - 5} more errors")

    if validation.warnings:
        print(f"\nWarnings ({len(validation.warnings)}):")
        for warning in validation.warnings[:3]:
            print(f"    - {warning}")

    if report_path:
        report.generate(board, report_path)
        print(f"\nReport written to {report_path}")

    if output_path:
        print(f"\nGenerating PDF: {output_path}")
        PDFGenerator().generate(board, output_path)
        print("  PDF created successfully!")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="planboard - Production Capacity Scheduling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s curves                                  List standard learning curves
  %(prog)s project lc-simple-tee --days 10         Project a curve over 10 days

  %(prog)s allocate -q 1000 -s 2024-03-04 -d 2024-03-08 --ceiling 250
  %(prog)s allocate -q 5000 -s 2024-03-04 -d 2024-03-20 --curve lc-standard-polo

  %(prog)s demo                                    Plan sample orders on 4 lines
  %(prog)s demo --lines 2 --orders 10 -o plan.pdf  Overlapping bookings with PDF
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("curves", help="List standard learning curves")

    project_parser = subparsers.add_parser("project", help="Project a learning curve")
    project_parser.add_argument("curve", help="Learning curve ID")
    project_parser.add_argument(
        "--days", "-n",
        type=int,
        default=14,
        help="Number of days to project (default: 14)",
    )
    project_parser.add_argument(
        "--start", "-s",
        type=parse_date,
        default=date.today(),
        help="First day (default: today)",
    )

    allocate_parser = subparsers.add_parser("allocate", help="Allocate one order")
    allocate_parser.add_argument("--quantity", "-q", type=int, required=True)
    allocate_parser.add_argument("--start", "-s", type=parse_date, required=True)
    allocate_parser.add_argument(
        "--deadline", "-d",
        type=parse_date,
        required=True,
        help="Last production day (inclusive)",
    )
    allocate_parser.add_argument(
        "--ceiling", "-c",
        type=float,
        help="Resource daily capacity ceiling",
    )
    allocate_parser.add_argument("--curve", help="Learning curve ID")
    allocate_parser.add_argument(
        "--mode", "-m",
        default="capacity",
        choices=[m.value for m in FlatRateMode],
        help="Flat-rate mode when no curve is used (default: capacity)",
    )
    allocate_parser.add_argument(
        "--rate", "-r",
        type=int,
        help="Default flat daily rate",
    )

    demo_parser = subparsers.add_parser("demo", help="Plan sample orders on a board")
    demo_parser.add_argument(
        "--lines", "-l",
        type=int,
        default=4,
        help="Number of lines (default: 4)",
    )
    demo_parser.add_argument(
        "--orders", "-n",
        type=int,
        default=8,
        help="Number of orders (default: 8)",
    )
    demo_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path",
    )
    demo_parser.add_argument(
        "--report",
        type=str,
        help="Output text report path",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "curves":
        run_curves()
        return 0
    elif args.command == "project":
        return run_project(args.curve, args.days, args.start)
    elif args.command == "allocate":
        return run_allocate(
            args.quantity,
            args.start,
            args.deadline,
            args.ceiling,
            args.curve,
            args.mode,
            args.rate,
        )
    elif args.command == "demo":
        run_demo(args.lines, args.orders, args.output, args.report)
        return 0
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
