"""
Pytest configuration and shared fixtures for the weno_hybrid test suite.

This module provides common fixtures, test configuration, and utilities
used across the entire test suite.
"""

import pytest

import numpy as np

from weno_hybrid import FieldRegistry, WENOSensorConfig

# =============================================================================
# Test Configuration
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (slower, cross-component)")
    config.addinivalue_line("markers", "mathematical: Mathematical property validation tests")
    config.addinivalue_line("markers", "slow: Slow tests (may take >10 seconds)")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test paths."""
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/mathematical/" in test_path:
            item.add_marker(pytest.mark.mathematical)

        if "large" in item.name or "slow" in item.name:
            item.add_marker(pytest.mark.slow)


# =============================================================================
# Helpers
# =============================================================================


def random_oscillation_matrices(n_cells: int, n: int, seed: int = 0) -> np.ndarray:
    """Symmetric positive definite matrices, one per cell."""
    rng = np.random.default_rng(seed)
    A = rng.standard_normal((n_cells, n, n))
    return np.einsum("cij,ckj->cik", A, A) + n * np.eye(n)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def scenario_config():
    """Weighting parameters of the two-stencil identity-matrix scenario."""
    return WENOSensorConfig(epsilon=1e-6, p=2.0, dm=1000.0)


@pytest.fixture
def identity_mesh():
    """Single cell, n=3, oscillation matrix = identity."""
    B = np.eye(3)[np.newaxis, :, :]
    return B, FieldRegistry(n_cells=1)


@pytest.fixture
def small_mesh():
    """Eight cells with random SPD oscillation matrices, n=4."""
    B = random_oscillation_matrices(8, 4, seed=42)
    return B, FieldRegistry(n_cells=8)


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def make_oscillation_matrices():
    """Factory for per-cell SPD oscillation matrices."""
    return random_oscillation_matrices
