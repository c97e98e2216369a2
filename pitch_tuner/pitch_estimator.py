"""Time-domain autocorrelation pitch estimation."""

from __future__ import annotations

from functools import reduce
from typing import ClassVar, NamedTuple, Optional, Tuple

import numpy as np

from .logger import get_logger
from .note_types import PitchEstimate, SampleFrame

logger = get_logger(__name__)


class _LagSearch(NamedTuple):
    """Accumulator for the fold over candidate lags."""

    best_score: float
    best_offset: int
    previous_score: float
    rising: bool  # Was the previous lag accepted on a rising edge?
    crests: Tuple[Tuple[int, float], ...]  # (offset, score) at the top of each rising run


class PitchEstimator:
    """Estimate the fundamental frequency of a frame by autocorrelation.

    The frame is compared against lagged copies of itself. Lags are only
    considered while the similarity curve is climbing above the acceptance
    threshold, which skips the trivial zero-lag match and the slopes between
    periods.
    """

    # Detection settings
    DEFAULT_SILENCE_THRESHOLD: ClassVar[float] = 0.01  # RMS below this is silence
    DEFAULT_ACCEPTANCE_THRESHOLD: ClassVar[float] = 0.9  # Minimum similarity for a lag
    DEFAULT_MIN_SCORE: ClassVar[float] = 0.01  # Best score must beat this
    DEFAULT_PEAK_TOLERANCE: ClassVar[float] = 0.1  # Fraction of a crest's slope

    def __init__(
        self,
        silence_threshold: Optional[float] = None,
        acceptance_threshold: Optional[float] = None,
        min_score: Optional[float] = None,
        peak_tolerance: Optional[float] = None,
    ) -> None:
        """Initialize the estimator.

        Args:
            silence_threshold: RMS level below which a frame has no pitch (default 0.01)
            acceptance_threshold: Similarity a lag must exceed to be considered (default 0.9)
            min_score: Best similarity must exceed this to report a pitch (default 0.01)
            peak_tolerance: How close (as a fraction of its per-sample slope) the
                peak of an earlier crest must be to the best one for that crest
                to be reported instead. 0 always reports the best crest. (default 0.1)
        """
        self.silence_threshold = float(
            silence_threshold if silence_threshold is not None else self.DEFAULT_SILENCE_THRESHOLD
        )
        self.acceptance_threshold = float(
            acceptance_threshold
            if acceptance_threshold is not None
            else self.DEFAULT_ACCEPTANCE_THRESHOLD
        )
        self.min_score = float(min_score if min_score is not None else self.DEFAULT_MIN_SCORE)
        self.peak_tolerance = float(
            peak_tolerance if peak_tolerance is not None else self.DEFAULT_PEAK_TOLERANCE
        )
        if self.peak_tolerance < 0:
            raise ValueError(f"peak_tolerance must be >= 0, got {self.peak_tolerance}")

    @staticmethod
    def similarity_scores(samples: np.ndarray) -> np.ndarray:
        """Similarity of the first half of the frame with each lagged copy.

        Score for lag k is 1 minus the mean absolute difference between
        samples[i] and samples[i + k] for i in the first half. A perfect
        periodic match scores 1.
        """
        max_lag = samples.size // 2
        head = samples[:max_lag]
        scores = np.empty(max_lag, dtype=np.float64)
        for offset in range(max_lag):
            scores[offset] = 1.0 - np.mean(np.abs(head - samples[offset : offset + max_lag]))
        return scores

    def _step(self, search: _LagSearch, lag: Tuple[int, float]) -> _LagSearch:
        offset, score = lag
        rising = score > self.acceptance_threshold and score > search.previous_score
        crests = search.crests
        if search.rising and not rising:
            crests = crests + ((offset - 1, search.previous_score),)

        best_score, best_offset = search.best_score, search.best_offset
        if rising and score > best_score and offset > 0:
            best_score, best_offset = score, offset

        return _LagSearch(best_score, best_offset, score, rising and offset > 0, crests)

    def _search(self, scores: np.ndarray) -> _LagSearch:
        initial = _LagSearch(
            best_score=0.0, best_offset=-1, previous_score=1.0, rising=False, crests=()
        )
        search = reduce(self._step, enumerate(scores.tolist()), initial)
        if search.rising:
            search = search._replace(
                crests=search.crests + ((len(scores) - 1, search.previous_score),)
            )
        return search

    @staticmethod
    def _crest_height(scores: np.ndarray, offset: int) -> Tuple[float, float]:
        """Height and slope of the peak around a crest.

        Near a period the similarity falls off linearly on both sides, and the
        true peak usually sits between two integer lags. Fitting a V through
        the crest and its neighbours recovers the peak height independently
        of where the sampling grid happened to land.

        Returns:
            (height, slope per sample); the raw score and 0.0 at the edges
        """
        score = float(scores[offset])
        if offset < 1 or offset + 1 >= scores.size:
            return score, 0.0
        left = score - float(scores[offset - 1])
        right = score - float(scores[offset + 1])
        slope = max(left, right)
        if slope <= 0.0:
            return score, 0.0
        return score + (slope - min(left, right)) / 2.0, slope

    def _first_strong_crest(self, search: _LagSearch, scores: np.ndarray) -> int:
        """Earliest crest that is a true period of the best one.

        A sub-harmonic lag (two or more periods) can land closer to the
        integer sample grid than the period itself and edge it out. An
        earlier crest is preferred when the best lag is a whole multiple of
        it and its fitted peak is as high as the best one, within
        peak_tolerance of its slope. A half period of a tone with a weak
        fundamental peaks visibly lower, so it is not taken.
        """
        best = search.best_offset
        if self.peak_tolerance == 0:
            return best

        best_height, _ = self._crest_height(scores, best)
        for offset, _score in search.crests:
            if offset >= best:
                break
            multiple = round(best / offset)
            # Rounding the period to a whole lag drifts by up to half a sample per multiple
            if abs(best - multiple * offset) > 1 + 0.5 * multiple:
                continue
            height, slope = self._crest_height(scores, offset)
            if best_height - height <= self.peak_tolerance * slope:
                return offset
        return best

    def estimate(self, frame: SampleFrame) -> PitchEstimate:
        """Estimate the fundamental frequency of one frame.

        Args:
            frame: The samples and their sample rate

        Returns:
            A valid PitchEstimate, or PitchEstimate.NO_PITCH for silence and
            frames without a clear periodicity
        """
        samples = np.asarray(frame.samples, dtype=np.float64)
        if samples.size < 2:
            return PitchEstimate.NO_PITCH

        rms = frame.rms
        if rms < self.silence_threshold:
            logger.debug(f"Silent frame (rms {rms:.4f} < {self.silence_threshold})")
            return PitchEstimate.NO_PITCH

        scores = self.similarity_scores(samples)
        search = self._search(scores)
        if search.best_offset == -1 or search.best_score <= self.min_score:
            logger.debug(f"No periodicity found (best score {search.best_score:.4f})")
            return PitchEstimate.NO_PITCH

        offset = self._first_strong_crest(search, scores)
        frequency = frame.sample_rate / offset
        logger.debug(
            f"Pitch {frequency:.2f}Hz at lag {offset} "
            f"(best lag {search.best_offset}, score {search.best_score:.4f})"
        )
        return PitchEstimate(frequency_hz=frequency, valid=True)


def estimate_pitch(samples, sample_rate: int, **settings) -> PitchEstimate:
    """Convenience wrapper: estimate the pitch of a raw sample array."""
    return PitchEstimator(**settings).estimate(SampleFrame(samples, sample_rate))
