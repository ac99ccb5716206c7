import copy
import pickle

import numpy as np
import pytest

from rcnet.errors import DimensionMismatchError, InvalidParameterError
from rcnet.reservoir import Reservoir, generate_connectivity
from rcnet.streams import InputStream, FeedbackSource


class ConstantStream(InputStream):
    def __init__(self, values):
        self.values = np.asarray(values, dtype=float)

    def size(self):
        return self.values.size

    def get_input(self, t, out=None):
        if out is None:
            return self.values.copy()
        out[:] = self.values
        return out


class RecordingFeedback(FeedbackSource):
    """Feedback of 0.5 * r; remembers every (r, t) it was asked for."""

    def __init__(self, n):
        self.n = n
        self.calls = []

    def fb_size(self):
        return self.n

    def get_feedback(self, r, t, out=None):
        self.calls.append((r.copy(), t))
        return 0.5 * r


@pytest.mark.parametrize('kwargs', [
    {'dim_reservoir': 0},
    {'dim_reservoir': -3},
    {'p': 1.5},
    {'p': -0.1},
    {'p': np.nan},
    {'g': np.inf},
    {'g': np.nan},
    {'tau': 0.0},
    {'tau': -1.0},
    {'tau': np.inf},
    {'dt': np.nan},
    {'integrator': 'midpoint'},
])
def test_invalid_parameters(kwargs):
    params = dict(dim_reservoir=10, p=0.5)
    params.update(kwargs)
    with pytest.raises(InvalidParameterError):
        Reservoir(**params)


def test_invalid_parameter_is_value_error():
    with pytest.raises(ValueError):
        Reservoir(dim_reservoir=0)


def test_same_seed_same_network():
    res1 = Reservoir(50, p=0.2, seed=42)
    res2 = Reservoir(50, p=0.2, seed=42)
    res3 = Reservoir(50, p=0.2, seed=43)

    np.testing.assert_array_equal(res1.get_w(), res2.get_w())
    np.testing.assert_array_equal(res1.get_x(), res2.get_x())
    assert not np.array_equal(res1.get_w(), res3.get_w())


def test_weight_variance_and_sparsity():
    N, p, g = 400, 0.1, 1.5
    W = Reservoir(N, p=p, g=g, seed=0).get_w()

    assert W.shape == (N, N)
    assert np.sum(W * W) / (N * N * p) == pytest.approx(g ** 2 / (N * p), rel=0.1)
    assert np.mean(W != 0) == pytest.approx(p, abs=0.01)


def test_connectivity_without_connections():
    W = generate_connectivity(20, 0.0, 1.5, np.random.default_rng(0))

    assert W.shape == (20, 20)
    assert not W.any()


def test_rates_are_cached():
    res = Reservoir(20, seed=1)

    r1 = res.get_r()
    r2 = res.get_r()
    np.testing.assert_array_equal(r1, r2)
    np.testing.assert_allclose(r1, np.tanh(res.get_x()))

    r1[:] = 5.0
    np.testing.assert_array_equal(res.get_r(), r2)


def test_step_invalidates_rates():
    res = Reservoir(20, seed=1)
    x_before = res.get_x()
    r_before = res.get_r()

    res.step()

    assert not np.array_equal(res.get_x(), x_before)
    r_after = res.get_r()
    assert not np.array_equal(r_after, r_before)
    np.testing.assert_allclose(r_after, np.tanh(res.get_x()))
    np.testing.assert_array_equal(res.get_r_array(), r_after)


def test_set_x_invalidates_rates():
    res = Reservoir(5, seed=1)
    res.get_r()

    res.set_x(np.zeros(5))

    np.testing.assert_array_equal(res.get_r(), np.zeros(5))


def test_set_w_and_x_check_shapes():
    res = Reservoir(4, seed=2)
    W = res.get_w()
    x = res.get_x()

    with pytest.raises(DimensionMismatchError):
        res.set_w(np.ones((3, 3)))
    with pytest.raises(DimensionMismatchError):
        res.set_x(np.ones(5))
    np.testing.assert_array_equal(res.get_w(), W)
    np.testing.assert_array_equal(res.get_x(), x)

    new_W = np.eye(4)
    res.set_w(new_W)
    new_W[0, 0] = 3.0
    np.testing.assert_array_equal(res.get_w(), np.eye(4))


def test_clock_advances():
    res = Reservoir(5, dt=0.01, seed=0)
    res.step()
    res.step(9)

    assert res.t == pytest.approx(0.1)


def test_unconnected_network_decays():
    res = Reservoir(6, p=0.5, g=0.0, tau=0.01, dt=0.001, seed=3)
    x0 = res.get_x()

    res.step(100)

    # x' = -x / tau
    np.testing.assert_allclose(res.get_x(), x0 * np.exp(-res.t / res.tau), rtol=1e-4)


def test_unconnected_network_decays_euler():
    res = Reservoir(6, p=0.5, g=0.0, tau=0.01, dt=0.001, integrator='euler', seed=3)
    x0 = res.get_x()

    res.step(100)

    np.testing.assert_allclose(res.get_x(), x0 * (1 - 0.1) ** 100, rtol=1e-10)


def test_input_drives_to_fixed_point():
    res = Reservoir(3, g=0.0, tau=0.01, dt=0.001, seed=0)
    res.set_input(ConstantStream([0.5, -1.0, 2.0]))

    res.step(2000)

    np.testing.assert_allclose(res.get_x(), [0.5, -1.0, 2.0], atol=1e-6)


def test_derivative_terms():
    res = Reservoir(3, tau=0.5, seed=0)
    W = np.array([[0, 1.5, 0], [0, 0, 1.5], [1.5, 0, 0]])
    res.set_w(W)
    res.set_input(ConstantStream([0.1, 0.2, 0.3]))
    fb = RecordingFeedback(3)
    res.set_feedback(fb)

    x = np.array([0.3, -0.2, 1.0])
    deriv = res._equation.time_deriv(x, 0.0)

    r = np.tanh(x)
    expected = (W @ r + np.array([0.1, 0.2, 0.3]) + 0.5 * r - x) / 0.5
    np.testing.assert_allclose(deriv, expected)
    np.testing.assert_allclose(fb.calls[0][0], r)


def test_switching_input_and_feedback_off():
    res = Reservoir(3, tau=0.5, seed=0)
    res.set_input(ConstantStream([1.0, 1.0, 1.0]))
    res.set_feedback(RecordingFeedback(3))
    res.set_input(None)
    res.set_feedback(None)

    x = np.array([0.3, -0.2, 1.0])
    expected = (res.get_w() @ np.tanh(x) - x) / 0.5
    np.testing.assert_allclose(res._equation.time_deriv(x, 0.0), expected)


def test_feedback_evaluated_at_every_rk_stage():
    res = Reservoir(4, dt=0.01, seed=5)
    fb = RecordingFeedback(4)
    res.set_feedback(fb)
    x0 = res.get_x()

    res.step()

    assert [t for _, t in fb.calls] == pytest.approx([0.0, 0.005, 0.005, 0.01])
    np.testing.assert_allclose(fb.calls[0][0], np.tanh(x0))
    assert not np.allclose(fb.calls[1][0], fb.calls[0][0])
    assert not np.allclose(fb.calls[3][0], fb.calls[2][0])


def test_feedback_evaluated_once_per_euler_step():
    res = Reservoir(4, dt=0.01, integrator='euler', seed=5)
    fb = RecordingFeedback(4)
    res.set_feedback(fb)

    res.step(3)

    assert [t for _, t in fb.calls] == pytest.approx([0.0, 0.01, 0.02])


def test_wiring_checks_sizes():
    res = Reservoir(4, seed=0)

    with pytest.raises(DimensionMismatchError):
        res.set_input(ConstantStream([1.0, 2.0]))
    with pytest.raises(DimensionMismatchError):
        res.set_feedback(RecordingFeedback(5))


def test_copies_do_not_share_cache_or_state():
    res = Reservoir(8, seed=4)
    res.get_r()

    clone = copy.deepcopy(res)
    assert clone._r is None
    np.testing.assert_array_equal(clone.get_r(), res.get_r())

    clone.step()
    assert not np.array_equal(clone.get_x(), res.get_x())
    assert res.t == 0.0

    restored = pickle.loads(pickle.dumps(res))
    np.testing.assert_array_equal(restored.get_x(), res.get_x())
    restored.step()
    np.testing.assert_array_equal(restored.get_x(), clone.get_x())


def test_set_dt():
    res = Reservoir(5, dt=0.01, seed=0)
    res.step(2)
    res.set_dt(0.005)
    res.step(2)

    assert res.t == pytest.approx(0.03)
    with pytest.raises(InvalidParameterError):
        res.set_dt(np.nan)


def test_shallow_copy_does_not_share_state():
    res = Reservoir(8, seed=4)
    clone = copy.copy(res)
    x0 = clone.get_x()
    W0 = clone.get_w()
    clone.get_r()

    res.step()
    res.set_w(np.zeros((8, 8)))

    np.testing.assert_array_equal(clone.get_x(), x0)
    np.testing.assert_array_equal(clone.get_w(), W0)
    np.testing.assert_allclose(clone.get_r(), np.tanh(x0))
    assert clone.t == 0.0


def test_non_numeric_parameters():
    with pytest.raises(InvalidParameterError):
        Reservoir(10, g='a')
    with pytest.raises(InvalidParameterError):
        Reservoir(10, p='0.1')
    with pytest.raises(InvalidParameterError):
        Reservoir(10, tau=None)
