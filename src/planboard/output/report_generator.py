"""Text report output for planning-board analysis.

This module creates a fixed-width text report showing:
- Per-resource bookings with their stack lanes
- Daily planned quantities and efficiencies per task
- Load against daily capacity and unscheduled remainders
"""

from collections import defaultdict
from datetime import date
from pathlib import Path
from typing import Union

from planboard.domain.models import AllocationResult
from planboard.planning.board import PlanningBoard


class ReportGenerator:
    """Generates text reports for a planning board."""

    def generate(self, board: PlanningBoard, output_path: Union[str, Path]) -> str:
        """Generate the report and save to file.

        Args:
            board: Board to report on.
            output_path: Path to save the text file.

        Returns:
            The generated text content.
        """
        content = self._generate_content(board)
        Path(output_path).write_text(content)
        return content

    def generate_to_string(self, board: PlanningBoard) -> str:
        return self._generate_content(board)

    def format_allocation(self, result: AllocationResult, label: str = "") -> str:
        """Format a single allocation as a day-by-day table."""
        lines = []
        if label:
            lines.append(label)
        lines.append(f"{'Date':<12} {'Qty':>8} {'Eff %':>7} {'Cumulative':>11}")
        lines.append("-" * 41)
        for segment in result.segments:
            lines.append(
                f"{segment.day.isoformat():<12} {segment.planned_qty:>8} "
                f"{segment.efficiency_percent:>7.1f} {segment.cumulative_qty_so_far:>11}"
            )
        lines.append("-" * 41)
        lines.append(f"Planned: {result.planned_quantity}")
        lines.append(f"Remaining: {result.remaining_quantity}")
        lines.append(f"End date: {result.actual_end_date.isoformat()}")
        source = "learning curve" if result.used_learning_curve else "flat rate"
        lines.append(f"Rate source: {source}")
        return "\n".join(lines)

    def _generate_content(self, board: PlanningBoard) -> str:
        lines = []

        lines.append("=" * 80)
        lines.append("PLANNING BOARD REPORT")
        lines.append("=" * 80)
        lines.append("")

        all_tasks = board.all_tasks()
        lines.append(f"Resources: {len(board.resources)}")
        lines.append(f"Scheduled tasks: {len(all_tasks)}")
        if all_tasks:
            first = min(t.start_date for t in all_tasks)
            last = max(t.end_date for t in all_tasks)
            lines.append(f"Horizon: {first.isoformat()} - {last.isoformat()}")
        lines.append("")

        for resource in board.resources:
            tasks = sorted(
                board.tasks_for(resource.resource_id),
                key=lambda t: (t.start_date, t.task_id),
            )
            levels = board.stack_levels(resource.resource_id)
            stacking = board.stacking_for(resource.resource_id)

            lines.append("-" * 80)
            lines.append(
                f"{resource.name} ({resource.resource_id}) - "
                f"capacity {resource.daily_capacity:g}/day"
            )
            lines.append("-" * 80)

            if not tasks:
                lines.append("  No tasks booked")
                lines.append("")
                continue

            lines.append(
                f"  {'Task':<8} {'Order':<12} {'Style':<12} {'Start':<11} {'End':<11} "
                f"{'Qty':>7} {'Left':>6} {'Lane':>4}"
            )
            for task in tasks:
                lines.append(
                    f"  {task.task_id:<8} {task.order_id[:12]:<12} {task.style[:12]:<12} "
                    f"{task.start_date.isoformat():<11} {task.end_date.isoformat():<11} "
                    f"{task.quantity:>7} {task.remaining_quantity:>6} "
                    f"{levels.get(task.task_id, '-'):>4}"
                )

            if stacking.has_overflow:
                lines.append(f"  Overflowed lanes: {', '.join(stacking.overflowed)}")

            # Daily load against capacity
            load: dict[date, int] = defaultdict(int)
            for task in tasks:
                for segment in task.segments:
                    load[segment.day] += segment.planned_qty

            lines.append("")
            lines.append("  Daily load:")
            for day in sorted(load):
                qty = load[day]
                pct = 100 * qty / resource.daily_capacity if resource.daily_capacity else 0
                bar = "#" * min(40, int(pct / 5))
                marker = " OVER" if qty > resource.daily_capacity else ""
                lines.append(f"    {day.isoformat()}: {bar} {qty} ({pct:.0f}%){marker}")
            lines.append("")

        unscheduled = board.unscheduled_quantities()
        lines.append("-" * 80)
        lines.append("UNSCHEDULED REMAINDERS")
        lines.append("-" * 80)
        if unscheduled:
            for task_id, qty in sorted(unscheduled.items()):
                lines.append(f"  {task_id}: {qty} units")
        else:
            lines.append("  None")

        lines.append("")
        lines.append("=" * 80)
        lines.append("END OF REPORT")
        lines.append("=" * 80)

        return "\n".join(lines)
