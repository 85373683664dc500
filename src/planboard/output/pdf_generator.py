"""PDF generation for planning-board output.

This module creates printable PDF boards showing:
- One band per production line, one row per stack lane
- Task bars across the calendar, labelled with order and style
- A summary page with planned and unscheduled quantities
"""

import zlib
from datetime import date, timedelta
from io import BytesIO
from pathlib import Path
from typing import Union

from planboard.domain.models import ScheduledTaskInterval
from planboard.planning.board import PlanningBoard

# Task bar palette (RGB tuples, 0-1 scale), picked per style
PALETTE = [
    (0.4, 0.7, 0.4),  # Green
    (0.4, 0.4, 0.8),  # Blue
    (0.8, 0.6, 0.2),  # Orange
    (0.7, 0.4, 0.7),  # Purple
    (0.3, 0.7, 0.8),  # Teal
    (0.8, 0.4, 0.4),  # Red
]
COLORS = {
    "lane": (0.95, 0.95, 0.95),
    "overflow": (0.9, 0.3, 0.3),
}


class PDFGenerator:
    """Generates printable PDF planning boards.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(board, "board.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
        lane_height: float = 16,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.lane_height = lane_height

    def generate(
        self,
        board: PlanningBoard,
        output_path: Union[str, Path],
        include_summary: bool = True,
    ) -> None:
        """Generate PDF board and save to file.

        Args:
            board: The planning board to render.
            output_path: Path to save the PDF.
            include_summary: Whether to include the summary page.
        """
        canvas = self._canvas_module()
        c = canvas.Canvas(str(output_path), pagesize=(self.page_width, self.page_height))
        self._draw(c, board, include_summary)
        c.save()

    def generate_to_buffer(
        self,
        board: PlanningBoard,
        include_summary: bool = True,
    ) -> BytesIO:
        """Generate PDF and return as bytes buffer."""
        canvas = self._canvas_module()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height))
        self._draw(c, board, include_summary)
        c.save()
        buffer.seek(0)
        return buffer

    def _canvas_module(self):
        try:
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )
        return canvas

    def _draw(self, c, board: PlanningBoard, include_summary: bool) -> None:
        tasks = board.all_tasks()
        if tasks:
            first = min(t.start_date for t in tasks)
            last = max(t.end_date for t in tasks)
        else:
            first = last = date.today()
        days = (last - first).days + 1

        self._draw_board_pages(c, board, first, days)
        if include_summary:
            self._draw_summary_page(c, board)

    def _draw_board_pages(self, c, board: PlanningBoard, first: date, days: int) -> None:
        """Draw resource bands, paginating when they do not fit."""
        header_height = 60
        band_gap = 10
        timeline_left = self.margin + 110  # Space for line names
        timeline_width = self.page_width - self.margin - 10 - timeline_left
        day_width = timeline_width / days

        top = self.page_height - self.margin - header_height - 20
        bottom = self.margin + 20

        self._draw_header(c, first, days)
        self._draw_date_axis(c, first, days, timeline_left, top + 5, day_width)
        y = top

        for resource in board.resources:
            schedule = board.schedule_for(resource.resource_id)
            lanes = max(1, schedule.max_level + 1)
            band_height = lanes * self.lane_height

            if y - band_height < bottom and y != top:
                c.showPage()
                self._draw_header(c, first, days)
                self._draw_date_axis(c, first, days, timeline_left, top + 5, day_width)
                y = top

            y -= band_height
            c.setFillColorRGB(0, 0, 0)
            c.setFont("Helvetica-Bold", 9)
            c.drawString(self.margin, y + band_height - 10, resource.name[:20])
            c.setFont("Helvetica", 7)
            c.drawString(
                self.margin, y + band_height - 19, f"{resource.daily_capacity:g}/day"
            )

            c.setFillColorRGB(*COLORS["lane"])
            c.rect(timeline_left, y, timeline_width, band_height, fill=1, stroke=0)

            overflowed = set(board.stacking_for(resource.resource_id).overflowed)
            for task in schedule.tasks:
                level = schedule.levels.get(task.task_id, 0)
                self._draw_task(
                    c,
                    task,
                    first,
                    timeline_left,
                    day_width,
                    y + band_height - (level + 1) * self.lane_height,
                    task.task_id in overflowed,
                )

            c.setStrokeColorRGB(0.3, 0.3, 0.3)
            c.setLineWidth(0.5)
            c.rect(timeline_left, y, timeline_width, band_height, fill=0, stroke=1)
            y -= band_gap

        c.showPage()

    def _draw_header(self, c, first: date, days: int) -> None:
        """Draw page header with the board horizon."""
        last = first + timedelta(days=days - 1)
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Production Plan - {first.strftime('%b %d, %Y')} to {last.strftime('%b %d, %Y')}",
        )

    def _draw_date_axis(
        self,
        c,
        first: date,
        days: int,
        x: float,
        y: float,
        day_width: float,
    ) -> None:
        """Draw date axis with day markers."""
        c.setFont("Helvetica", 7)
        c.setStrokeColorRGB(0.7, 0.7, 0.7)
        step = max(1, days // 20)
        for i in range(0, days, step):
            day = first + timedelta(days=i)
            day_x = x + i * day_width
            c.line(day_x, y, day_x, y - 5)
            c.drawString(day_x + 1, y + 2, day.strftime("%d/%m"))

    def _draw_task(
        self,
        c,
        task: ScheduledTaskInterval,
        first: date,
        timeline_x: float,
        day_width: float,
        y: float,
        overflowed: bool,
    ) -> None:
        """Draw a single task bar on its lane."""
        bx = timeline_x + (task.start_date - first).days * day_width
        bw = task.duration_days * day_width
        height = self.lane_height - 2

        color = PALETTE[zlib.crc32(task.style.encode()) % len(PALETTE)]
        c.setFillColorRGB(*color)
        c.rect(bx, y + 1, bw, height, fill=1, stroke=0)

        if overflowed:
            c.setStrokeColorRGB(*COLORS["overflow"])
            c.setLineWidth(1)
            c.rect(bx, y + 1, bw, height, fill=0, stroke=1)

        if bw > 30:
            c.setFillColorRGB(0, 0, 0)
            c.setFont("Helvetica", 6)
            label = f"{task.order_id} {task.style} ({task.quantity})"
            c.drawString(bx + 2, y + height / 2 - 1, label[: int(bw / 3)])

    def _draw_summary_page(self, c, board: PlanningBoard) -> None:
        """Draw summary page with planned and unscheduled quantities."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, self.page_height - self.margin - 20, "Plan Summary")

        y = self.page_height - self.margin - 60
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Lines")
        y -= 20

        c.setFont("Helvetica", 10)
        for resource in board.resources:
            tasks = board.tasks_for(resource.resource_id)
            planned = sum(t.planned_quantity for t in tasks)
            lanes = board.schedule_for(resource.resource_id).max_level + 1
            c.drawString(
                self.margin + 20,
                y,
                f"{resource.name}: {len(tasks)} tasks, {planned} units planned, "
                f"{lanes} lanes",
            )
            y -= 15

        unscheduled = board.unscheduled_quantities()
        y -= 20
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Unscheduled Remainders")
        y -= 20
        c.setFont("Helvetica", 10)
        if not unscheduled:
            c.drawString(self.margin + 20, y, "None")
        for task_id, qty in sorted(unscheduled.items()):
            c.drawString(self.margin + 20, y, f"{task_id}: {qty} units")
            y -= 15
            if y < self.margin:
                break

        c.showPage()
