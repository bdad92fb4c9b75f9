"""
Test suite for package configuration and validation helpers.
"""

import warnings

import numpy as np
import pytest
import hodos
from hodos import config, temp_config, MissingEphemerisError
from hodos.utils import precision_name, validation_error


class TestConfig:
    """Test global configuration object."""

    def test_defaults(self):
        """Default values are as documented."""
        assert config.STRICT_VALIDATION is True
        assert config.STRICT_ROTATIONAL_RESET is False
        assert config.WARN_ON_PRECISION_CAST is True
        assert config.DEFAULT_PLOT_POINTS == 1000

    def test_reset(self):
        """reset() restores defaults."""
        config.STRICT_ROTATIONAL_RESET = True
        config.DEFAULT_PLOT_POINTS = 5
        config.reset()
        assert config.STRICT_ROTATIONAL_RESET is False
        assert config.DEFAULT_PLOT_POINTS == 1000

    def test_repr_lists_fields(self):
        """repr shows every setting."""
        text = repr(config)
        assert "STRICT_ROTATIONAL_RESET" in text
        assert "WARN_ON_PRECISION_CAST" in text

    def test_package_exposes_same_instance(self):
        """hodos.config is the instance used internally."""
        from hodos.config import config as internal
        assert hodos.config is internal


class TestTempConfig:
    """Test temporary configuration context manager."""

    def test_values_restored(self):
        """Values revert after the block."""
        with temp_config(STRICT_ROTATIONAL_RESET=True, DEFAULT_PLOT_POINTS=10):
            assert config.STRICT_ROTATIONAL_RESET is True
            assert config.DEFAULT_PLOT_POINTS == 10
        assert config.STRICT_ROTATIONAL_RESET is False
        assert config.DEFAULT_PLOT_POINTS == 1000

    def test_values_restored_on_error(self):
        """Values revert even if the block raises."""
        with pytest.raises(RuntimeError):
            with temp_config(WARN_ON_PRECISION_CAST=False):
                raise RuntimeError("boom")
        assert config.WARN_ON_PRECISION_CAST is True

    def test_unknown_key_raises(self):
        """Unknown settings are rejected."""
        with pytest.raises(AttributeError, match="no attribute"):
            with temp_config(NOT_A_SETTING=1):
                pass


class TestValidationError:
    """Test raise-or-warn helper."""

    def test_raises_when_strict(self):
        """Raises the requested error class in strict mode."""
        with pytest.raises(MissingEphemerisError, match="missing"):
            validation_error("missing", MissingEphemerisError, strict=True)

    def test_warns_when_not_strict(self):
        """Issues a UserWarning otherwise."""
        with pytest.warns(UserWarning, match="missing"):
            validation_error("missing", MissingEphemerisError, strict=False)

    def test_follows_global_setting(self):
        """Default strictness comes from STRICT_VALIDATION."""
        with temp_config(STRICT_VALIDATION=False):
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                validation_error("soft failure")
            assert len(caught) == 1
        with pytest.raises(ValueError):
            validation_error("hard failure")


def test_precision_name():
    """Double precision is reported by numpy name."""
    assert precision_name(np.float64) == "float64"
    assert precision_name(np.float32) == "float32"
