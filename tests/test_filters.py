"""Tests for filter-graph templates and tempo decomposition."""

import math
from pathlib import Path

import pytest

from avsuite.operations import filters
from avsuite.operations.parameters import EnhanceAudioPreset


class TestDecomposeTempo:
    """atempo only accepts [0.5, 2.0]; larger factors are chained."""

    @pytest.mark.parametrize("factor", [0.5, 0.75, 1.0, 1.5, 2.0])
    def test_in_range_is_single_step(self, factor):
        assert filters.decompose_tempo(factor) == [factor]

    @pytest.mark.parametrize(
        "factor", [0.01, 0.1, 0.25, 0.3, 2.5, 3.0, 4.0, 5.0, 8.0, 10.0, 100.0, 1234.5],
    )
    def test_chain_properties(self, factor):
        """Steps stay in range, multiply back to the factor, and are as few as possible."""
        steps = filters.decompose_tempo(factor)

        assert all(filters.ATEMPO_MIN <= s <= filters.ATEMPO_MAX for s in steps)
        assert math.isclose(math.prod(steps), factor, rel_tol=1e-6)
        assert len(steps) == max(1, math.ceil(abs(math.log2(factor)) - 1e-9))

    def test_all_but_last_step_are_bounds(self):
        assert filters.decompose_tempo(10.0) == [2.0, 2.0, 2.0, 1.25]
        assert filters.decompose_tempo(0.1)[:-1] == [0.5, 0.5, 0.5]

    @pytest.mark.parametrize("factor", [0.0, -1.0, math.inf, -math.inf, math.nan])
    def test_rejects_invalid_factor(self, factor):
        with pytest.raises(ValueError):
            filters.decompose_tempo(factor)

    def test_atempo_chain(self):
        assert filters.atempo_chain(1.5) == "atempo=1.5"
        assert filters.atempo_chain(4.0) == "atempo=2.0,atempo=2.0"

    def test_speed_filter_graph(self):
        assert filters.speed_filter_graph(3.0) == (
            "[0:v]setpts=PTS/3.0[v];[0:a]atempo=2.0,atempo=1.5[a]"
        )


class TestFormatting:
    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "00:00:00.000"),
            (12.5, "00:00:12.500"),
            (61.25, "00:01:01.250"),
            (3661.5, "01:01:01.500"),
            (59.9996, "00:01:00.000"),
        ],
    )
    def test_format_time(self, seconds, expected):
        assert filters.format_time(seconds) == expected

    @pytest.mark.parametrize("value,expected", [(2, "2.0"), (0.2, "0.2"), (1.25, "1.25")])
    def test_number(self, value, expected):
        assert filters.number(value) == expected


class TestTemplates:
    def test_scale_pad(self):
        assert filters.scale_pad_filter(1920, 1080) == (
            "scale=1920:1080:force_original_aspect_ratio=decrease,"
            "pad=1920:1080:(ow-iw)/2:(oh-ih)/2"
        )

    @pytest.mark.parametrize(
        "position,x",
        [("left", "0"), ("center", "(in_w-out_w)/2"), ("right", "in_w-out_w")],
    )
    def test_vertical_crop(self, position, x):
        assert filters.vertical_crop_filter(position) == f"crop=ih*9/16:ih:{x}:0"

    def test_gif_palette(self):
        assert filters.gif_palette_filter(10, 480) == (
            "fps=10,scale=480:-1:flags=lanczos,split[s0][s1];[s0]palettegen[p];[s1][p]paletteuse"
        )

    def test_contact_sheet(self):
        assert filters.contact_sheet_filter(0.25, 5, 3) == "fps=0.25,scale=320:-1,tile=5x3"

    def test_overlay(self):
        assert filters.overlay_filter("small", "bottom-right") == (
            "[1:v]scale=iw/4:-1[pip];[0:v][pip]overlay=main_w-overlay_w-10:main_h-overlay_h-10"
        )

    def test_subtitles_escapes_colons_and_quotes(self):
        result = filters.subtitles_filter(Path("/media/C:drive/it's.srt"))

        assert result == "subtitles='/media/C\\:drive/it\\'s.srt'"

    def test_concat_list(self):
        content = filters.concat_list([Path("/a/one.mp4"), Path("/b/it's.mp4")])

        assert content == "file '/a/one.mp4'\nfile '/b/it'\\''s.mp4'\n"

    @pytest.mark.parametrize("preset", list(EnhanceAudioPreset))
    def test_enhance_chain_order(self, preset):
        chain = filters.enhance_audio_filter(preset, Path("/models/bd.rnnn"))
        names = [part.split("=")[0] for part in chain.split(",")]

        assert names == ["arnndn", "equalizer", "equalizer", "acompressor", "loudnorm"]
        assert chain.startswith(f"arnndn=m=/models/bd.rnnn:mix={preset.denoise_mix}")

    def test_enhance_light_is_gentler(self):
        light = filters.enhance_audio_filter(EnhanceAudioPreset.LIGHT, Path("m"))
        podcast = filters.enhance_audio_filter(EnhanceAudioPreset.PODCAST, Path("m"))

        assert "mix=0.6" in light
        assert "ratio=8" in podcast

    def test_every_nth_frame(self):
        assert filters.every_nth_frame_filter(25) == (
            "select='not(mod(n\\,25))',setpts='N/(FRAME_RATE*TB)'"
        )
