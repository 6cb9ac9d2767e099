import random
import re

import pytest

from shipment_tracker.config import Settings
from shipment_tracker.errors import FailureKind, TrackingCodeExhaustedError
from shipment_tracker.tracking_codes import TrackingCodeGenerator


class ScriptedRandom:
    """randint() returns the scripted values in order."""

    def __init__(self, values):
        self._values = iter(values)
        self.calls = 0

    def randint(self, a, b):
        self.calls += 1
        return next(self._values)


def test_code_format():
    gen = TrackingCodeGenerator()
    for _ in range(200):
        assert re.fullmatch(r"DHL\d{6}", gen.generate(lambda code: False))


def test_suffix_range():
    gen = TrackingCodeGenerator(rng=random.Random(7))
    for _ in range(200):
        code = gen.generate(lambda c: False)
        assert code.startswith("DHL")
        assert 100000 <= int(code[3:]) <= 999999


def test_generator_has_no_prefix_option():
    with pytest.raises(TypeError):
        TrackingCodeGenerator(prefix="XYZ")


def test_settings_have_no_prefix_option():
    assert "tracking_code_prefix" not in Settings.model_fields


def test_retries_past_collisions():
    rng = ScriptedRandom([123456, 123456, 654321])
    taken = {"DHL123456"}
    gen = TrackingCodeGenerator(rng=rng)
    assert gen.generate(taken.__contains__) == "DHL654321"
    assert rng.calls == 3


def test_exhausted_attempts():
    rng = ScriptedRandom([111111] * 3)
    gen = TrackingCodeGenerator(max_attempts=3, rng=rng)
    with pytest.raises(TrackingCodeExhaustedError) as exc_info:
        gen.generate(lambda code: True)
    assert rng.calls == 3
    assert exc_info.value.to_failure().kind == FailureKind.EXHAUSTED_ATTEMPTS


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        TrackingCodeGenerator(max_attempts=0)
