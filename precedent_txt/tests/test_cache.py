"""
Tests for the cache decision.
"""

import pytest

from precedent_txt.cache import decide_cache, inspect_cache


class TestDecideCache:
    def test_cached_pdf_is_reused(self):
        decision = decide_cache(reuse_cache=True, force_rerun=False, pdf_cache_exists=True, output_text_exists=False)
        assert decision.should_download is False
        assert decision.should_run is True

    def test_missing_pdf_is_downloaded(self):
        decision = decide_cache(reuse_cache=True, force_rerun=False, pdf_cache_exists=False, output_text_exists=False)
        assert decision.should_download is True

    @pytest.mark.parametrize("pdf_cache_exists", [True, False])
    def test_no_cache_always_downloads(self, pdf_cache_exists):
        decision = decide_cache(
            reuse_cache=False,
            force_rerun=False,
            pdf_cache_exists=pdf_cache_exists,
            output_text_exists=False,
        )
        assert decision.should_download is True

    def test_existing_output_skips_run(self):
        decision = decide_cache(reuse_cache=True, force_rerun=False, pdf_cache_exists=True, output_text_exists=True)
        assert decision.should_run is False

    @pytest.mark.parametrize("output_text_exists", [True, False])
    def test_force_rerun_always_runs(self, output_text_exists):
        decision = decide_cache(
            reuse_cache=True,
            force_rerun=True,
            pdf_cache_exists=True,
            output_text_exists=output_text_exists,
        )
        assert decision.should_run is True


class TestInspectCache:
    def test_reads_existence(self, tmp_path):
        pdf = tmp_path / "case.pdf"
        pdf.write_bytes(b"%PDF-1.4")

        state = inspect_cache(pdf, tmp_path / "case.txt")

        assert state.pdf_cached is True
        assert state.text_produced is False
