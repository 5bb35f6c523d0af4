"""Tests for the fitting configuration and package logging setup."""

import io
import logging

import pytest

import capsulefit
from capsulefit.bounding.polyhedra import compute_bounding_capsule_polyhedron
from capsulefit.bounding.config import (
    DEFAULT_FITTING_CONFIG,
    DEFAULT_TOLERANCES,
    get_fitting_config,
)


class TestFittingConfig:
    def test_returns_copy(self):
        config = get_fitting_config("scipy")
        config["maxiter"] = -1
        assert DEFAULT_FITTING_CONFIG["scipy"]["maxiter"] != -1

    def test_overrides_merged(self):
        config = get_fitting_config("torch", {"lbfgs_steps": 3})
        assert config["lbfgs_steps"] == 3
        assert config["penalty_weight"] == DEFAULT_FITTING_CONFIG["torch"]["penalty_weight"]

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unknown fitting method"):
            get_fitting_config("lm")

    def test_tolerances_positive(self):
        assert all(value > 0 for value in DEFAULT_TOLERANCES.values())


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_logger(self):
        logger = logging.getLogger("capsulefit")
        handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
        yield
        logger.handlers = handlers
        logger.setLevel(level)
        logger.propagate = propagate

    def test_sets_level_and_single_handler(self):
        capsulefit.configure_logging("DEBUG")
        capsulefit.configure_logging("debug")
        logger = logging.getLogger("capsulefit")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            capsulefit.configure_logging("VERBOSE")

    def test_custom_format(self):
        capsulefit.configure_logging("INFO", "%(levelname)s %(message)s")
        handler = logging.getLogger("capsulefit").handlers[0]
        assert handler.formatter._fmt == "%(levelname)s %(message)s"

    def test_info_reports_pipeline(self, make_cube):
        capsulefit.configure_logging("INFO", "%(levelname)s %(message)s")
        stream = io.StringIO()
        logging.getLogger("capsulefit").handlers[0].setStream(stream)
        compute_bounding_capsule_polyhedron([make_cube()])
        output = stream.getvalue()
        assert "INFO Convex hull: 8 vertices from 8 points" in output
        assert "Initial capsule" in output
        assert "DEBUG" not in output

    def test_debug_reports_details(self, make_cube):
        capsulefit.configure_logging("debug", "%(levelname)s %(message)s")
        stream = io.StringIO()
        logging.getLogger("capsulefit").handlers[0].setStream(stream)
        compute_bounding_capsule_polyhedron([make_cube()])
        assert "DEBUG Merged 1 polyhedra into 8 points" in stream.getvalue()
