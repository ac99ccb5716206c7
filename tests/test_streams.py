import numpy as np
import pytest

from rcnet.errors import DimensionMismatchError, InvalidParameterError
from rcnet.streams import WAVES, SineWave, TriangleWave, SquareWave, SawTooth, DoubleSineWave


@pytest.mark.parametrize('wave, t, expected', [
    (SineWave(1.0), 0.25, 1.0),
    (SineWave(1.0), 0.75, -1.0),
    (TriangleWave(1.0), 0.0, 1.0),
    (TriangleWave(1.0), 0.5, -1.0),
    (TriangleWave(1.0), 0.25, 0.0),
    (SquareWave(1.0), 0.1, -1.0),
    (SquareWave(1.0), 0.6, 1.0),
    (SawTooth(2.0), 1.0, 0.0),
    (SawTooth(2.0), 0.5, -0.5),
    (DoubleSineWave(1.0), 0.25, 1.0 + np.sin(np.pi / 4)),
])
def test_wave_values(wave, t, expected):
    assert wave.get_input(t)[0] == pytest.approx(expected, abs=1e-12)


@pytest.mark.parametrize('name', sorted(WAVES))
def test_waves_are_periodic(name):
    wave = WAVES[name](0.3)
    # DoubleSineWave repeats after two periods
    for t in np.linspace(0.01, 0.28, 7):
        assert wave.get_input(t + 0.6)[0] == pytest.approx(wave.get_input(t)[0], abs=1e-9)


def test_wave_writes_into_buffer():
    out = np.zeros(1)

    assert SineWave(1.0).get_input(0.25, out) is out
    assert out[0] == pytest.approx(1.0)
    with pytest.raises(DimensionMismatchError):
        SineWave(1.0).get_input(0.0, np.zeros(2))


@pytest.mark.parametrize('period', [0.0, -1.0, np.inf])
def test_wave_invalid_period(period):
    with pytest.raises(InvalidParameterError):
        SineWave(period)
