"""Tests for the placement map renderer."""

import threading

import pytest

from map_render import PALETTE, GridRenderer, chalk_style, fit_scale
from placement_types import Piece, Used


def plain_style(piece_id: int, text: str) -> str:
    """Uncolored style: cells show their piece id."""
    return text.replace(" ", str(piece_id))


def fixed_viewport(width: int, height: int):
    return lambda: (width, height)


def two_piece_renderer(**kwargs) -> GridRenderer:
    renderer = GridRenderer(1024, style=plain_style, **kwargs)
    renderer.add(Piece("a", 100, 0))
    renderer.add(Piece("b", 50, 50))
    return renderer


# =============================================================================
# Test Pieces
# =============================================================================


class TestGridRendererAdd:
    """Tests for adding pieces."""

    def test_add_returns_index(self) -> None:
        renderer = GridRenderer(1024, style=plain_style)
        assert renderer.is_empty()
        assert renderer.add(Piece("a", 100, 0)) == 0
        assert renderer.add(Piece("b", 50, 50)) == 1
        assert len(renderer) == 2
        assert not renderer.is_empty()
        assert renderer.grid.cell(1, 1) == Used(1)

    def test_rejected_piece_is_not_listed(self) -> None:
        renderer = GridRenderer(1024, style=plain_style)
        with pytest.raises(ValueError):
            renderer.add(Piece("too big", 2048, 0))
        assert renderer.is_empty()

    def test_concurrent_adds(self) -> None:
        """Insertions from many threads are serialized."""
        renderer = GridRenderer(0x10000, style=plain_style)

        def worker(base: int) -> None:
            for i in range(10):
                renderer.add(Piece(f"bin{base}", 0x80, base * 0x1000 + i * 0x100))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(renderer) == 80
        placements = renderer.grid.placements()
        assert len(placements) == 80
        for piece_id, piece in enumerate(renderer.pieces):
            _, start, end = placements[piece_id]
            assert (start, end) == (piece.start, piece.end)

    @pytest.mark.parametrize("name", ["vertical_scale", "horizontal_scale"])
    def test_invalid_scale(self, name: str) -> None:
        with pytest.raises(ValueError):
            GridRenderer(1024, **{name: 0})


# =============================================================================
# Test Display
# =============================================================================


class TestGridRendererDisplay:
    """Tests for the diagram text."""

    def test_two_piece_diagram(self) -> None:
        renderer = two_piece_renderer(horizontal_scale=2, vertical_scale=1)
        assert renderer.display() == (
            "┌──┬──┐ <-- 0x000000\n"
            "│00│  │\n"
            "│00├──┤ <-- 0x000032\n"
            "│00│11│\n"
            "├──┴──┤ <-- 0x000064\n"
            "│     │\n"
            "└─────┘ <-- 0x000400\n"
            "0: 'a'\n"
            "1: 'b'\n"
        )

    def test_vertical_scale_repeats_segment_lines(self) -> None:
        renderer = two_piece_renderer(horizontal_scale=1, vertical_scale=2)
        assert renderer.display() == (
            "┌─┬─┐ <-- 0x000000\n"
            "│0│ │\n"
            "│0│ │\n"
            "│0├─┤ <-- 0x000032\n"
            "│0│1│\n"
            "│0│1│\n"
            "├─┴─┤ <-- 0x000064\n"
            "│   │\n"
            "│   │\n"
            "└───┘ <-- 0x000400\n"
            "0: 'a'\n"
            "1: 'b'\n"
        )

    def test_display_is_reproducible(self) -> None:
        first = two_piece_renderer(horizontal_scale=2, vertical_scale=1).display()
        second = two_piece_renderer(horizontal_scale=2, vertical_scale=1).display()
        assert first == second
        assert str(two_piece_renderer(horizontal_scale=2, vertical_scale=1)) == first

    def test_empty_map(self) -> None:
        renderer = GridRenderer(0x100, horizontal_scale=3, vertical_scale=1, style=plain_style)
        assert renderer.display() == (
            "┌───┐ <-- 0x000000\n"
            "│   │\n"
            "└───┘ <-- 0x000100\n"
        )

    def test_piece_touching_the_end(self) -> None:
        renderer = GridRenderer(0x200, horizontal_scale=1, vertical_scale=1, style=plain_style)
        renderer.add(Piece("tail", 0x100, 0x100))
        assert renderer.display() == (
            "┌─┐ <-- 0x000000\n"
            "│ │\n"
            "├─┤ <-- 0x000100\n"
            "│0│\n"
            "└─┘ <-- 0x000200\n"
            "0: 'tail'\n"
        )

    def test_duplicates_then_follower(self) -> None:
        """Duplicated pieces side by side, then one reusing the first track."""
        renderer = GridRenderer(0x300, horizontal_scale=1, vertical_scale=1, style=plain_style)
        renderer.add(Piece("x", 0x100, 0))
        renderer.add(Piece("x", 0x100, 0))
        renderer.add(Piece("y", 0x100, 0x100))
        assert renderer.grid.tracks == 2
        assert renderer.display() == (
            "┌─┬─┐ <-- 0x000000\n"
            "│0│1│\n"
            "├─┼─┤ <-- 0x000100\n"
            "│2│ │\n"
            "├─┘ │ <-- 0x000200\n"
            "│   │\n"
            "└───┘ <-- 0x000300\n"
            "0: 'x'\n"
            "1: 'x'\n"
            "2: 'y'\n"
        )


# =============================================================================
# Test Scaling and Colors
# =============================================================================


class TestScales:
    """Tests for explicit and adaptive magnification."""

    def test_explicit_scales(self) -> None:
        renderer = two_piece_renderer(horizontal_scale=3, vertical_scale=4)
        assert renderer.scales() == (3, 4)

    def test_adaptive_scales_fit_half_viewport(self) -> None:
        """2 tracks and 3 segments in an 80x24 viewport."""
        renderer = two_piece_renderer(viewport=fixed_viewport(80, 24))
        assert renderer.scales() == (18, 2)

    def test_adaptive_scales_floor_at_one(self) -> None:
        renderer = two_piece_renderer(viewport=fixed_viewport(4, 4))
        assert renderer.scales() == (1, 1)

    def test_mixed_scales(self) -> None:
        """Only the missing scale is computed from the viewport."""
        renderer = two_piece_renderer(horizontal_scale=5, viewport=fixed_viewport(80, 24))
        assert renderer.scales() == (5, 2)

    def test_adaptive_display_uses_viewport(self) -> None:
        renderer = two_piece_renderer(viewport=fixed_viewport(12, 20))
        lines = renderer.display().splitlines()
        # horizontal: (6 - 3) // 2 = 1, vertical: (10 - 4) // 3 = 2
        assert lines[0] == "┌─┬─┐ <-- 0x000000"
        assert lines[1] == lines[2] == "│0│ │"

    @pytest.mark.parametrize(
        "available,count,expected",
        [(80, 1, 38), (80, 2, 18), (10, 10, 1), (0, 3, 1), (100, 0, 1)],
    )
    def test_fit_scale(self, available: int, count: int, expected: int) -> None:
        assert fit_scale(available, count) == expected


class TestColors:
    """Tests for the default chalk palette."""

    def test_palette_has_seven_colors(self) -> None:
        assert len(PALETTE) == 7

    def test_color_wraps_around_palette(self) -> None:
        assert chalk_style(0, " ") == chalk_style(7, " ")
        assert chalk_style(1, " ") != chalk_style(0, " ")

    def test_chalk_style_emits_ansi(self) -> None:
        styled = chalk_style(3, "3")
        assert styled.startswith("\x1b[")
        assert "3" in styled
        assert styled.endswith("\x1b[0m")

    def test_legend_is_colored(self) -> None:
        renderer = GridRenderer(1024, horizontal_scale=1, vertical_scale=1)
        renderer.add(Piece("boot.bin", 16, 0))
        footer = renderer.display().splitlines()[-1]
        assert footer == f"{chalk_style(0, '0')}: 'boot.bin'"
