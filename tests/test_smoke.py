"""Smoke tests for the end-to-end planning flow."""

from datetime import date

import pytest

from planboard.cli import create_sample_lines, create_sample_orders, main
from planboard.domain.calendar import WorkCalendar
from planboard.domain.learning_curve import create_standard_catalog
from planboard.output.pdf_generator import PDFGenerator
from planboard.output.report_generator import ReportGenerator
from planboard.planning.board import PlanningBoard
from planboard.validation.validator import PlanValidator

MONDAY = date(2024, 3, 4)


class TestSmoke:
    """End-to-end smoke tests for the planning board."""

    @pytest.fixture
    def board(self):
        """Sample orders dropped round-robin on four lines."""
        catalog = create_standard_catalog()
        lines = create_sample_lines(4)
        board = PlanningBoard(resources=lines, catalog=catalog, is_blocked_date=WorkCalendar())
        for i, order in enumerate(create_sample_orders(8, catalog)):
            board.schedule_order(order, lines[i % len(lines)].resource_id, MONDAY)
        return board

    def test_sample_board_is_valid(self, board):
        """Every sample order is placed and the board validates."""
        assert len(board.all_tasks()) == 8

        validation = PlanValidator().validate_board(board)
        assert validation.is_valid, [str(e) for e in validation.errors]

    def test_same_day_drops_stack(self, board):
        """Two orders dropped on the same line and day use two lanes."""
        for line in board.resources:
            assert sorted(board.stack_levels(line.resource_id).values()) == [0, 1]

    def test_text_report(self, board, tmp_path):
        path = tmp_path / "board.txt"
        content = ReportGenerator().generate(board, path)

        assert path.read_text() == content
        assert "PLANNING BOARD REPORT" in content
        assert "T0001" in content
        assert "END OF REPORT" in content

    def test_pdf_board(self, board):
        pytest.importorskip("reportlab")

        buffer = PDFGenerator().generate_to_buffer(board)

        assert buffer.read(4) == b"%PDF"


class TestCli:
    """Tests for the command-line entry point."""

    def test_allocate(self, capsys):
        code = main([
            "allocate", "-q", "1000", "-s", "2024-03-04", "-d", "2024-03-08", "-c", "250",
        ])
        out = capsys.readouterr().out

        assert code == 0
        assert "Planned: 1000" in out
        assert "End date: 2024-03-07" in out
        assert "Validation: PASSED" in out

    def test_allocate_with_curve(self, capsys):
        code = main([
            "allocate", "-q", "5000", "-s", "2024-03-04", "-d", "2024-03-20",
            "--curve", "lc-standard-polo",
        ])
        out = capsys.readouterr().out

        assert code == 0
        assert "Rate source: learning curve" in out

    def test_allocate_bad_window(self, capsys):
        code = main(["allocate", "-q", "100", "-s", "2024-03-08", "-d", "2024-03-04"])

        assert code == 1
        assert "Invalid request" in capsys.readouterr().err

    def test_curves(self, capsys):
        assert main(["curves"]) == 0
        assert "lc-simple-tee" in capsys.readouterr().out

    def test_project(self, capsys):
        assert main(["project", "lc-very-fast", "--days", "5", "-s", "2024-03-04"]) == 0
        out = capsys.readouterr().out
        assert "2024-03-08" in out

    def test_project_unknown_curve(self, capsys):
        assert main(["project", "lc-nope"]) == 1

    def test_demo_writes_report(self, capsys, tmp_path):
        path = tmp_path / "demo.txt"
        assert main(["demo", "--lines", "2", "--orders", "4", "--report", str(path)]) == 0

        assert path.exists()
        assert "Validation: PASSED" in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == 1
