import math

import numpy as np
import pytest
from scipy.integrate import quad

from swapcool.pulses import ParameterCache, SawtoothDrive


@pytest.fixture
def drive(make_params):
    return SawtoothDrive(
        make_params(
            rabi_frequency=2.0,
            rabi_switch_coeff=3.0,
            rabi_switch_power=2.0,
            detuning_amplitude=5.0,
            detuning_frequency=0.7,
            transition_frequency=11.0,
        )
    )


def test_coupling_envelope_peaks_mid_period(drive):
    period = 1 / drive.detuning_frequency
    assert drive.coupling_envelope(0.5 * period) == pytest.approx(2.0)
    assert drive.coupling_envelope(0.0) == pytest.approx(2.0 * math.exp(-3.0))
    assert drive.coupling_envelope(2.5 * period) == pytest.approx(2.0)


def test_coupling_envelope_symmetric_about_midpoint(drive):
    period = 1 / drive.detuning_frequency
    for frac in (0.05, 0.2, 0.4):
        assert drive.coupling_envelope(frac * period) == pytest.approx(
            drive.coupling_envelope((1 - frac) * period)
        )


def test_coupling_envelope_shape(drive):
    period = 1 / drive.detuning_frequency
    # phi = 0.25 -> |2 phi - 1| = 0.5
    assert drive.coupling_envelope(0.25 * period) == pytest.approx(2.0 * math.exp(-3.0 * 0.25))


def test_detuning_is_a_sawtooth(drive):
    period = 1 / drive.detuning_frequency
    assert drive.detuning(0.0) == pytest.approx(-5.0)
    assert drive.detuning(0.25 * period) == pytest.approx(-2.5)
    assert drive.detuning(0.5 * period) == pytest.approx(0.0, abs=1e-12)
    assert drive.detuning(0.999 * period) == pytest.approx(5.0 * 0.998)
    assert drive.detuning(3.25 * period) == pytest.approx(-2.5)


def test_cumulative_phase_over_full_cycles(drive):
    period = 1 / drive.detuning_frequency
    for n in range(4):
        assert drive.cumulative_phase(n * period) == pytest.approx(n * 11.0 * period)


@pytest.mark.parametrize("gt", [0.3, 1.0, 3.3, 7.9])
def test_cumulative_phase_matches_numerical_integral(drive, gt):
    period = 1 / drive.detuning_frequency
    breaks = [n * period for n in range(1, int(gt / period) + 1)]
    expected, _ = quad(
        lambda t: drive.transition_frequency + drive.detuning(t),
        0.0,
        gt,
        points=breaks or None,
        limit=200,
    )
    assert drive.cumulative_phase(gt) == pytest.approx(expected, rel=1e-9, abs=1e-9)


def test_half_values_reuse_cache(drive, monkeypatch):
    calls = []
    original = SawtoothDrive.detuning

    def counting(self, gt):
        calls.append(gt)
        return original(self, gt)

    monkeypatch.setattr(SawtoothDrive, "detuning", counting)

    first = drive.half_values(1.3)
    second = drive.half_values(1.3)
    assert first == second
    assert calls == [1.3]

    drive.half_values(1.4)
    assert calls == [1.3, 1.4]

    drive.cache.invalidate()
    drive.half_values(1.4)
    assert calls == [1.3, 1.4, 1.4]


def test_half_values(drive):
    half_detuning, half_rabi = drive.half_values(0.0)
    assert half_detuning == pytest.approx(-2.5)
    assert half_rabi == pytest.approx(math.exp(-3.0))


def test_cache_passed_in_is_used(make_params):
    cache = ParameterCache()
    drive = SawtoothDrive(make_params(), cache=cache)
    drive.half_values(0.5)
    assert drive.cache is cache
    assert cache.matches(0.5)
    assert not cache.matches(0.6)
    assert np.isfinite(cache.half_rabi)
