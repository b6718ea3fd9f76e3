import logging
import unittest

import gplik.num as gnp
from gplik.core import (
    GaussianProcessSnapshot,
    Likelihood,
    GaussianLikelihood,
    GaussianLogLikelihood,
    LikelihoodError,
    UnsupportedOperation,
    InvalidCovarianceState,
    ShapeMismatch,
    NonFiniteLikelihood,
)
from gplik.core.likelihood import (
    data_fit_term,
    gaussian_complexity_penalty,
    gaussian_log_complexity_penalty,
    gaussian_log_constant_term,
    split_derivative_blocks,
)


def identity_snapshot(determinant=1.0, Y=None, D=None):
    if Y is None:
        Y = gnp.ones((2, 1))
    if D is None:
        D = gnp.eye(2)
    return GaussianProcessSnapshot(
        label_matrix=Y,
        core_matrix=gnp.eye(2),
        determinant=determinant,
        derivative_kernel_matrix=D,
    )


class TestGaussianLogLikelihood(unittest.TestCase):
    def test_two_points_identity(self):
        gp = identity_snapshot()
        value = GaussianLogLikelihood().evaluate(gp)
        self.assertEqual(value.shape, (1,))
        self.assertAlmostEqual(gnp.to_scalar(value[0]), -1.0 - gnp.log(2.0 * gnp.pi))
        self.assertAlmostEqual(gnp.to_scalar(value[0]), -2.8378770664093453)

    def test_two_points_identity_gradient(self):
        grad = GaussianLogLikelihood().get_parameter_derivatives(identity_snapshot())
        self.assertEqual(grad.shape, (1,))
        self.assertAlmostEqual(gnp.to_scalar(grad[0]), 0.0)

    def test_call_is_evaluate(self):
        lik = GaussianLogLikelihood()
        gp = identity_snapshot(determinant=3.0)
        self.assertTrue(gnp.allclose(lik(gp), lik.evaluate(gp)))

    def test_one_value_per_output(self):
        Y = gnp.asarray([[1.0, 0.0, 2.0], [1.0, 1.0, 0.0]])
        value = GaussianLogLikelihood().evaluate(identity_snapshot(Y=Y))
        ct = -gnp.log(2.0 * gnp.pi)
        expected = gnp.asarray([-1.0, -0.5, -2.0]) + ct
        self.assertTrue(gnp.allclose(value, expected))

    def test_saturation_at_tiny(self):
        lik = GaussianLogLikelihood()
        expected = -0.5 * gnp.log(gnp.hp_tiny) - gnp.log(2.0 * gnp.pi) - 1.0
        for determinant in [gnp.hp_tiny, gnp.hp_tiny / 4, 0.0, -1.0]:
            value = lik.evaluate(identity_snapshot(determinant=determinant))
            self.assertTrue(gnp.isfinite(value[0]))
            self.assertAlmostEqual(gnp.to_scalar(value[0]), float(expected), places=6)

    def test_saturation_at_max(self):
        lik = GaussianLogLikelihood()
        expected = -0.5 * gnp.log(gnp.hp_max) - gnp.log(2.0 * gnp.pi) - 1.0
        value = lik.evaluate(identity_snapshot(determinant=gnp.inf))
        self.assertTrue(gnp.isfinite(value[0]))
        self.assertAlmostEqual(gnp.to_scalar(value[0]), float(expected), places=6)

    def test_non_finite_data_fit_raises(self):
        Y = gnp.asarray([[1e200], [1e200]])
        with self.assertRaises(NonFiniteLikelihood) as ctx:
            GaussianLogLikelihood().evaluate(identity_snapshot(Y=Y))
        err = ctx.exception
        self.assertTrue(gnp.isinf(err.df[0]))
        self.assertEqual(float(err.determinant), 1.0)
        self.assertIn("df", str(err))
        self.assertIsInstance(err, ArithmeticError)

    def test_nan_determinant_raises(self):
        with self.assertRaises(NonFiniteLikelihood):
            GaussianLogLikelihood().evaluate(identity_snapshot(determinant=gnp.nan))

    def test_non_finite_raised_by_combined_operations(self):
        gp = identity_snapshot(Y=gnp.asarray([[1e200], [1e200]]))
        lik = GaussianLogLikelihood()
        with self.assertRaises(NonFiniteLikelihood):
            lik.get_value_and_parameter_derivatives(gp)
        with self.assertRaises(NonFiniteLikelihood):
            lik.get_value_and_jacobian(gp)

    def test_non_finite_is_logged_at_debug_level(self):
        gp = identity_snapshot(Y=gnp.asarray([[1e200], [1e200]]))
        with self.assertLogs("gplik", level=logging.DEBUG) as logs:
            with self.assertRaises(NonFiniteLikelihood):
                GaussianLogLikelihood().evaluate(gp)
        self.assertTrue(any("determinant" in line for line in logs.output))

    def test_shape_mismatch(self):
        D = gnp.ones((3, 2))
        lik = GaussianLogLikelihood()
        gp = identity_snapshot(D=D)
        with self.assertRaises(ShapeMismatch) as ctx:
            lik.get_parameter_derivatives(gp)
        self.assertEqual(ctx.exception.shape, (3, 2))
        with self.assertRaises(ShapeMismatch):
            lik.get_value_and_parameter_derivatives(gp)
        with self.assertRaises(ShapeMismatch):
            lik.get_value_and_jacobian(gp)

    def test_shape_mismatch_with_wrong_column_count(self):
        lik = GaussianLogLikelihood()
        gp = identity_snapshot(D=gnp.ones((4, 3)))
        self.assertAlmostEqual(gnp.to_scalar(lik.evaluate(gp)[0]), -2.8378770664093453)
        with self.assertRaises(ShapeMismatch) as ctx:
            lik.get_parameter_derivatives(gp)
        self.assertEqual(ctx.exception.shape, (4, 3))
        with self.assertRaises(ShapeMismatch):
            lik.get_value_and_jacobian(gp)

    def test_derivative_blocks_of_wrong_size(self):
        lik = GaussianLogLikelihood()
        for D in [gnp.ones((4, 4)), gnp.ones(4)]:
            gp = identity_snapshot(D=D)
            lik.evaluate(gp)
            with self.assertRaises(ValueError) as ctx:
                lik.get_parameter_derivatives(gp)
            self.assertNotIsInstance(ctx.exception, ShapeMismatch)

    def test_several_parameter_blocks(self):
        D = gnp.vstack((gnp.eye(2), 2.0 * gnp.ones((2, 2)), gnp.zeros((2, 2))))
        Y = gnp.asarray([[1.0], [2.0]])
        grad = GaussianLogLikelihood().get_parameter_derivatives(identity_snapshot(Y=Y, D=D))
        # alpha = Y, (Y Y' - I) = [[0, 2], [2, 3]]
        self.assertTrue(gnp.allclose(grad, gnp.asarray([1.5, 7.0, 0.0])))

    def test_no_parameters(self):
        grad = GaussianLogLikelihood().get_parameter_derivatives(
            identity_snapshot(D=gnp.zeros((0, 2)))
        )
        self.assertEqual(grad.shape, (0,))

    def test_missing_derivative_kernel_matrix(self):
        gp = GaussianProcessSnapshot(gnp.ones((2, 1)), gnp.eye(2), 1.0)
        lik = GaussianLogLikelihood()
        lik.evaluate(gp)
        with self.assertRaises(ValueError):
            lik.get_parameter_derivatives(gp)

    def test_describe(self):
        lik = GaussianLogLikelihood()
        self.assertEqual(lik.describe(), "GaussianLogLikelihood")
        self.assertEqual(str(lik), "GaussianLogLikelihood")
        self.assertTrue(repr(lik).startswith("<gplik.core.GaussianLogLikelihood object>"))
        self.assertTrue(lik.supports_gradient)
        self.assertTrue(lik.supports_jacobian)


class TestGaussianLikelihood(unittest.TestCase):
    def test_two_points_identity(self):
        value = GaussianLikelihood().evaluate(identity_snapshot())
        self.assertAlmostEqual(gnp.to_scalar(value[0]), gnp.exp(-1.0) / (2.0 * gnp.pi))

    def test_matches_log_likelihood(self):
        A = gnp.asarray([[2.0, 0.3, 0.1], [0.3, 1.5, -0.2], [0.1, -0.2, 0.8]])
        C, determinant = gnp.inverse_with_determinant(A)
        Y = gnp.asarray([[0.5, -1.0], [0.2, 0.3], [-0.4, 1.2]])
        gp = GaussianProcessSnapshot(Y, C, determinant)
        p = GaussianLikelihood().evaluate(gp)
        logp = GaussianLogLikelihood().evaluate(gp)
        self.assertTrue(gnp.all(p > 0.0))
        self.assertTrue(gnp.allclose(gnp.log(p), logp))

    def test_negative_determinant_raises(self):
        with self.assertRaises(InvalidCovarianceState) as ctx:
            GaussianLikelihood().evaluate(identity_snapshot(determinant=-2 * gnp.hp_eps))
        self.assertLess(ctx.exception.determinant, 0)
        self.assertIsInstance(ctx.exception, ValueError)

    def test_round_off_determinant_saturates(self):
        expected = gnp.minimum(gnp.exp(-1.0) / gnp.sqrt(gnp.hp_tiny) / (2.0 * gnp.pi), gnp.fmax)
        for determinant in [-gnp.hp_eps, -0.5 * gnp.hp_eps, 0.0]:
            value = GaussianLikelihood().evaluate(identity_snapshot(determinant=determinant))
            self.assertTrue(gnp.isfinite(value[0]))
            self.assertTrue(gnp.isclose(value[0], gnp.float64(expected)))

    def test_no_gradient(self):
        lik = GaussianLikelihood()
        gp = identity_snapshot()
        self.assertFalse(lik.supports_gradient)
        self.assertFalse(lik.supports_jacobian)
        with self.assertRaises(UnsupportedOperation) as ctx:
            lik.get_parameter_derivatives(gp)
        self.assertEqual(ctx.exception.operation, "get_parameter_derivatives")
        self.assertIsInstance(ctx.exception, NotImplementedError)
        with self.assertRaises(UnsupportedOperation):
            lik.get_value_and_parameter_derivatives(gp)
        with self.assertRaises(UnsupportedOperation):
            lik.get_value_and_jacobian(gp)

    def test_underflows_for_many_points(self):
        n = 1000
        gp = GaussianProcessSnapshot(gnp.zeros((n, 1)), gnp.eye(n), 1.0)
        self.assertEqual(GaussianLikelihood().evaluate(gp)[0], 0.0)
        logp = GaussianLogLikelihood().evaluate(gp)
        self.assertAlmostEqual(gnp.to_scalar(logp[0]), -n / 2.0 * gnp.log(2.0 * gnp.pi))

    def test_describe(self):
        self.assertEqual(GaussianLikelihood().describe(), "GaussianLikelihood")


class TestLikelihoodInterface(unittest.TestCase):
    def test_base_class_implements_nothing(self):
        lik = Likelihood()
        with self.assertRaises(UnsupportedOperation):
            lik.evaluate(identity_snapshot())
        with self.assertRaises(LikelihoodError):
            lik(identity_snapshot())

    def test_snapshot_provider(self):
        class Provider:
            def snapshot(self):
                return identity_snapshot()

        value = GaussianLogLikelihood().evaluate(Provider())
        self.assertAlmostEqual(gnp.to_scalar(value[0]), -2.8378770664093453)

    def test_accessors_pass_through(self):
        gp = GaussianProcessSnapshot(gnp.ones((2, 1)), gnp.eye(2), 5.0, gnp.eye(2), sigma=0.3)
        lik = GaussianLogLikelihood()
        C, determinant = lik._get_core_matrix(gp)
        self.assertIs(C, gp.core_matrix)
        self.assertEqual(determinant, gnp.hp_dtype(5.0))
        self.assertIs(lik._get_label_matrix(gp), gp.label_matrix)
        self.assertIs(lik._get_derivative_kernel_matrix(gp), gp.derivative_kernel_matrix)
        self.assertEqual(lik._get_sigma(gp), 0.3)


def test_data_fit_term_per_column():
    Y = gnp.asarray([[1.0, 2.0], [0.0, 1.0]])
    C = gnp.asarray([[2.0, 0.5], [0.5, 1.0]])
    df = data_fit_term(Y, C)
    expected = gnp.asarray([-0.5 * 2.0, -0.5 * (8.0 + 2.0 + 1.0)])
    assert gnp.allclose(df, expected)


def test_complexity_penalties():
    assert gaussian_complexity_penalty(4.0) == 0.5
    assert gnp.isclose(float(gaussian_log_complexity_penalty(gnp.exp(2.0))), -1.0)
    assert gaussian_log_complexity_penalty(0.0) == -0.5 * gnp.log(gnp.hp_tiny)
    assert gaussian_log_complexity_penalty(gnp.inf) == -0.5 * gnp.log(gnp.hp_max)


def test_invalid_covariance_threshold():
    gaussian_complexity_penalty(-gnp.hp_eps)
    try:
        gaussian_complexity_penalty(-1.5 * gnp.hp_eps)
    except InvalidCovarianceState:
        pass
    else:
        raise AssertionError("InvalidCovarianceState not raised")


def test_log_constant_term():
    assert gnp.isclose(gaussian_log_constant_term(2), -gnp.log(2.0 * gnp.pi))
    assert gaussian_log_constant_term(0) == 0.0


def test_split_derivative_blocks():
    D = gnp.arange(12.0).reshape(6, 2)
    blocks = split_derivative_blocks(D)
    assert blocks.shape == (3, 2, 2)
    assert gnp.allclose(blocks[1], D[2:4])
    try:
        split_derivative_blocks(gnp.ones((5, 2)))
    except ShapeMismatch:
        pass
    else:
        raise AssertionError("ShapeMismatch not raised")


if __name__ == "__main__":
    unittest.main()
