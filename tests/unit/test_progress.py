from __future__ import annotations

from unittest.mock import Mock, patch

from tabular_import.services.progress import ProgressTracker, SubmissionProgress, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    """Test that is_tty_enabled returns sys.stdout.isatty()."""
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


def test_submission_progress_fraction():
    assert SubmissionProgress(1, 4).fraction == 0.25
    assert SubmissionProgress(0, 0).fraction == 1.0
    assert SubmissionProgress(4, 4).done
    assert not SubmissionProgress(3, 4).done


class TestProgressTracker:
    """Test cases for ProgressTracker class."""

    def test_init_with_tty_enabled(self):
        """A tqdm bar in rows is created on a TTY."""
        with patch('tabular_import.services.progress.is_tty_enabled', return_value=True), \
             patch('tabular_import.services.progress.tqdm') as mock_tqdm:

            tracker = ProgressTracker(5, description="Submitting")

            assert tracker.total_rows == 5
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Submitting",
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        """No bar outside a TTY."""
        with patch('tabular_import.services.progress.is_tty_enabled', return_value=False), \
             patch('tabular_import.services.progress.tqdm') as mock_tqdm:
            tracker = ProgressTracker(5)

            assert tracker.enabled is False
            assert tracker.pbar is None
            mock_tqdm.assert_not_called()

    def test_callback_advances_by_delta(self):
        mock_pbar = Mock()
        with patch('tabular_import.services.progress.is_tty_enabled', return_value=True), \
             patch('tabular_import.services.progress.tqdm', return_value=mock_pbar):
            tracker = ProgressTracker(3)
            tracker(SubmissionProgress(0, 3))
            tracker(SubmissionProgress(1, 3))
            tracker(SubmissionProgress(3, 3))

        assert [c.args[0] for c in mock_pbar.update.call_args_list] == [1, 2]
        assert tracker.attempted == 3

    def test_callback_without_tty_only_counts(self):
        with patch('tabular_import.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(2)
            tracker(SubmissionProgress(2, 2))
        assert tracker.attempted == 2

    def test_context_manager_closes_bar(self):
        mock_pbar = Mock()
        with patch('tabular_import.services.progress.is_tty_enabled', return_value=True), \
             patch('tabular_import.services.progress.tqdm', return_value=mock_pbar):
            with ProgressTracker(1) as tracker:
                tracker.set_postfix(failed=0)
        mock_pbar.set_postfix.assert_called_once_with(failed=0)
        mock_pbar.close.assert_called_once()
        assert tracker.pbar is None
