"""Tests for single steps and step batches."""

import numpy as np
import pytest
from py_mazer.core.alea_prng import AleaPRNG
from py_mazer.core.curve import points_circle
from py_mazer.core.forces import ForceField
from py_mazer.core.geometry import Point, distance
from py_mazer.core.maze import StepRequest, run_batch, step_points
from py_mazer.core.parameters import SimulationParameters


@pytest.fixture
def reference_params():
    """Parameters of the reference tool."""
    return SimulationParameters(
        n_min=3, r1=100, sigma=1.1, delta=1, brownian_amplitude=5,
        sampling_rate=1, fairing_amplitude=0.35, attract_repel_amplitude=2.5,
        k_max=50, k_min=5,
    )


@pytest.fixture
def circle():
    """75 points on a circle of radius 420 (spacing about 35.2)."""
    return points_circle(420.0, 75)


def _request(curve, params, num_steps, seed="maze"):
    return StepRequest(
        points=np.array(curve.points),
        params=params,
        num_steps=num_steps,
        rng_state=AleaPRNG(seed).get_state(),
    )


class TestStepPoints:
    """Test one simulation step."""

    def test_single_step_scenario(self, circle, reference_params):
        """One step on the sparse circle moves every point by roughly the Brownian amplitude."""
        points = circle.as_points()
        field = ForceField(reference_params)
        result = step_points(points, field, AleaPRNG("scenario"))

        assert len(result) == 75
        for before, after in zip(points, result):
            moved = distance(before, after)
            # Brownian 5 plus an inward fairing pull of about 0.5
            assert 4.0 < moved < 6.0

    def test_single_step_reproducible(self, circle, reference_params):
        field = ForceField(reference_params)
        a = step_points(circle.as_points(), field, AleaPRNG("seed"))
        b = step_points(circle.as_points(), field, AleaPRNG("seed"))
        assert a == b

    def test_singleton_untouched(self, reference_params):
        field = ForceField(reference_params)
        rng = AleaPRNG("one")
        assert step_points([Point(1.0, 2.0)], field, rng) == [Point(1.0, 2.0)]
        assert rng.call_count == 0

    def test_empty_untouched(self, reference_params):
        assert step_points([], ForceField(reference_params), AleaPRNG("none")) == []

    def test_without_noise_circle_shrinks_evenly(self, circle):
        """With only fairing, a regular polygon contracts uniformly toward its centre."""
        params = SimulationParameters(brownian_amplitude=0.0)
        result = step_points(circle.as_points(), ForceField(params), AleaPRNG("quiet"))
        radii = [np.hypot(p.x, p.y) for p in result]

        assert len(result) == 75
        assert np.allclose(radii, radii[0])
        assert radii[0] < 420.0


class TestRunBatch:
    """Test batches of steps."""

    def test_determinism(self, circle, reference_params):
        """Same seed, curve and parameters give bit-identical output."""
        first = run_batch(_request(circle, reference_params, 10))
        second = run_batch(_request(circle, reference_params, 10))

        np.testing.assert_array_equal(first.points, second.points)
        assert first.rng_state == second.rng_state

    def test_different_seeds_diverge(self, circle, reference_params):
        first = run_batch(_request(circle, reference_params, 3, seed="a"))
        second = run_batch(_request(circle, reference_params, 3, seed="b"))
        assert not np.array_equal(first.points, second.points)

    def test_batches_compose(self, circle, reference_params):
        """Two batches of 3 equal one batch of 6 when the random stream is carried over."""
        whole = run_batch(_request(circle, reference_params, 6))

        half = run_batch(_request(circle, reference_params, 3))
        rest = run_batch(StepRequest(
            points=half.points, params=reference_params, num_steps=3, rng_state=half.rng_state,
        ))

        np.testing.assert_array_equal(whole.points, rest.points)

    def test_request_not_mutated(self, circle, reference_params):
        request = _request(circle, reference_params, 5)
        before = request.points.copy()
        run_batch(request)
        np.testing.assert_array_equal(request.points, before)

    def test_zero_steps(self, circle, reference_params):
        response = run_batch(_request(circle, reference_params, 0))
        np.testing.assert_array_equal(response.points, circle.points)
        assert response.num_steps == 0

    def test_curve_stays_closed(self, circle, reference_params):
        """Output is always a cyclic list of finite points, closing segment included."""
        response = run_batch(_request(circle, reference_params, 25))
        points = response.points

        assert points.ndim == 2 and points.shape[1] == 2
        assert len(points) >= 3
        assert np.all(np.isfinite(points))
        closing = np.hypot(*(points[0] - points[-1]))
        assert 0 < closing <= 50.0 + 1e-9


class TestTightContact:
    """Test steps where two stretches of the curve almost touch."""

    @staticmethod
    def _hairpin(gap):
        bottom = [Point(float(x), 0.0) for x in range(10)]
        top = [Point(float(x), gap) for x in range(9, -1, -1)]
        return bottom + top

    def test_tight_hairpin_step_finishes_with_bounded_growth(self):
        """A huge repulsive push is resampled within one pass of bounded size."""
        points = self._hairpin(0.2)
        field = ForceField(SimulationParameters(brownian_amplitude=0.0))
        result = step_points(points, field, AleaPRNG("tight"))

        assert 0 < len(result) <= 2 * len(points)
        assert np.all(np.isfinite(np.array(result)))

    def test_tight_hairpin_pushes_rows_apart(self):
        points = self._hairpin(0.2)
        field = ForceField(SimulationParameters(brownian_amplitude=0.0))
        moves = field.displacements(points, AleaPRNG("tight"))

        assert moves[4].y < 0
        assert moves[15].y > 0
