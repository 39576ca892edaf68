import numpy as np
import pytest
from jax.experimental import sparse
from scipy import integrate, special
from scipy.stats import geninvgauss, norm

from nigfield_jax.core import PosteriorDraws, SARFieldData
from nigfield_jax.core.errors import ParameterError, ShapeError
from nigfield_jax.core.params import canonical_params, variance_correction
from nigfield_jax.likelihoods import nig_logpdf
from nigfield_jax.parallel import SequentialReducer, ThreadPoolReducer
from nigfield_jax.posterior import (
    MixingCFG,
    MixingVariablePosteriorSampler,
    gig_parameters,
    latent_field_summary,
    mixing_summary,
    sample_gig,
    summarize_draws,
    whiten_draws,
)

from conftest import ring_adjacency


def _gig_logpdf(u, lam, chi, psi):
    return geninvgauss.logpdf(u, p=lam, b=np.sqrt(chi * psi), scale=np.sqrt(chi / psi))


def _mixture_terms(u, lam_i, eta_star, zeta_star, h):
    """log prior of the mixing variable and log likelihood of Lambda_i given it."""
    eta, zeta = (float(v) for v in canonical_params(eta_star, zeta_star))
    sigma = float(variance_correction(eta, zeta))
    log_prior = _gig_logpdf(u, -0.5, h ** 2 / eta, 1.0 / eta)
    log_lik = norm.logpdf(lam_i, loc=sigma * zeta * (u - h), scale=sigma * np.sqrt(u))
    return log_prior, log_lik


def _draws(rng, n_draws, n):
    return dict(
        X_draws=rng.normal(size=(n_draws, n)),
        rho_draws=rng.uniform(-0.5, 0.8, size=n_draws),
        eta_star_draws=rng.uniform(0.3, 2.0, size=n_draws),
        zeta_star_draws=rng.normal(scale=0.8, size=n_draws),
    )


class TestConditionalKernel:
    @pytest.mark.parametrize("lam_i,eta_star,zeta_star,h", [
        (1.3, 0.9, 0.8, 1.2),
        (-0.4, 2.5, -1.7, 0.6),
    ])
    def test_scaled_chi_is_exact_conditional(self, lam_i, eta_star, zeta_star, h):
        u = np.linspace(0.05, 10.0, 200)
        log_prior, log_lik = _mixture_terms(u, lam_i, eta_star, zeta_star, h)

        psi, chi = gig_parameters([[lam_i]], [eta_star], [zeta_star], [h], chi_variant="scaled")
        diff = _gig_logpdf(u, -1.0, chi[0, 0], psi[0]) - (log_prior + log_lik)
        # posterior / (prior x likelihood) is constant in u
        assert np.ptp(diff) < 1e-8

        psi_u, chi_u = gig_parameters([[lam_i]], [eta_star], [zeta_star], [h], chi_variant="unscaled")
        diff_u = _gig_logpdf(u, -1.0, chi_u[0, 0], psi_u[0]) - (log_prior + log_lik)
        assert np.ptp(diff_u) > 1e-3

    def test_mixture_integrates_to_nig_density(self):
        lam_i, eta_star, zeta_star, h = 0.7, 0.9, 0.5, 1.2

        def joint(u):
            log_prior, log_lik = _mixture_terms(u, lam_i, eta_star, zeta_star, h)
            return np.exp(log_prior + log_lik)

        marginal, _ = integrate.quad(joint, 0.0, np.inf, epsabs=0.0, epsrel=1e-11, limit=200)
        assert np.log(marginal) == pytest.approx(float(nig_logpdf(lam_i, eta_star, zeta_star, h)),
                                                 rel=1e-7)

    def test_variants_agree_without_skewness(self, ring_field):
        W, h, x = ring_field
        DX = whiten_draws(x[None, :], np.array([0.3]), W)
        psi_s, chi_s = gig_parameters(DX, [1.4], [0.0], h, chi_variant="scaled")
        psi_u, chi_u = gig_parameters(DX, [1.4], [0.0], h, chi_variant="unscaled")
        np.testing.assert_array_equal(psi_s, psi_u)
        np.testing.assert_array_equal(chi_s, chi_u)

    def test_unknown_variant(self):
        with pytest.raises(ValueError, match="chi_variant"):
            gig_parameters([[0.0]], [1.0], [0.0], [1.0], chi_variant="half")


def test_whiten_draws_matches_operator(ring_field, rng):
    W, _, _ = ring_field
    X = rng.normal(size=(3, W.shape[0]))
    rho = np.array([0.1, -0.2, 0.6])
    DX = whiten_draws(X, rho, W)
    for d in range(3):
        np.testing.assert_allclose(DX[d], (np.eye(W.shape[0]) - rho[d] * W) @ X[d], rtol=1e-14)


class TestSampleGIG:
    def test_moments_of_reciprocal_gamma_shape(self):
        # GIG(-1, chi, psi): E[V] = sqrt(chi/psi) K_0(w) / K_1(w), E[V^2] = chi/psi, w = sqrt(chi psi)
        chi, psi = 3.0, 0.75
        V = sample_gig(-1.0, chi, psi, np.random.default_rng(3), size=100_000)
        w = np.sqrt(chi * psi)
        assert V.mean() == pytest.approx(np.sqrt(chi / psi) * special.k0(w) / special.k1(w), rel=0.015)
        assert (V ** 2).mean() == pytest.approx(chi / psi, rel=0.04)
        assert np.all(V > 0)

    def test_default_size_follows_parameters(self):
        V = sample_gig(-1.0, np.ones((2, 3)), np.array([1.0, 2.0, 3.0]), np.random.default_rng(0))
        assert V.shape == (2, 3)


class TestMixingSampler:
    def test_shape_and_positivity(self, rng):
        W = ring_adjacency(6)
        h = rng.uniform(0.5, 2.0, size=6)
        sampler = MixingVariablePosteriorSampler(reducer=SequentialReducer())
        V = sampler.sample(W=W, h=h, rng=1, **_draws(rng, 5, 6))
        assert V.shape == (5, 6)
        assert np.all(np.isfinite(V)) and np.all(V > 0)

    def test_context_manager_releases_thread_pool(self, ring_field, rng):
        W, h, _ = ring_field
        with MixingVariablePosteriorSampler(MixingCFG(n_workers=2)) as sampler:
            assert isinstance(sampler.reducer, ThreadPoolReducer)
            V = sampler.sample(W=W, h=h, rng=3, **_draws(rng, 6, len(h)))
            assert sampler.reducer._executor is not None
        assert sampler.reducer._executor is None
        assert V.shape == (6, len(h))

    def test_close_leaves_injected_sequential_reducer_usable(self, rng):
        W = ring_adjacency(4)
        sampler = MixingVariablePosteriorSampler(reducer=SequentialReducer())
        sampler.close()
        V = sampler.sample(W=W, h=np.ones(4), rng=0, **_draws(rng, 2, 4))
        assert V.shape == (2, 4)

    def test_moments_of_unit_mixing_variable(self):
        # zero field and no skewness: V_i / h_i has E = K_0(h/eta) / K_1(h/eta) and E[(V/h)^2] = 1
        n_draws, n = 1000, 40
        eta_star, h_val = 0.5, 2.0
        with MixingVariablePosteriorSampler(MixingCFG(n_workers=4)) as sampler:
            V = sampler.sample(
                X_draws=np.zeros((n_draws, n)),
                rho_draws=np.zeros(n_draws),
                W=np.zeros((n, n)),
                eta_star_draws=np.full(n_draws, eta_star),
                zeta_star_draws=np.zeros(n_draws),
                h=np.full(n, h_val),
                rng=11,
            )
        w = h_val / eta_star
        assert V.mean() == pytest.approx(special.k0(w) / special.k1(w), abs=0.01)
        assert (V ** 2).mean() == pytest.approx(1.0, abs=0.03)

    def test_result_is_relative_to_scale(self, ring_field, rng):
        W, h, _ = ring_field
        kwargs = _draws(rng, 4, len(h))
        V = MixingVariablePosteriorSampler(reducer=SequentialReducer()).sample(W=W, h=h, rng=99, **kwargs)

        DX = whiten_draws(kwargs["X_draws"], kwargs["rho_draws"], W)
        psi, chi = gig_parameters(DX, kwargs["eta_star_draws"], kwargs["zeta_star_draws"], h)
        children = np.random.SeedSequence(99).spawn(4)
        expected = np.stack([
            sample_gig(-1.0, chi[d], psi[d], np.random.default_rng(children[d])) for d in range(4)
        ]) / h[None, :]
        np.testing.assert_allclose(V, expected, rtol=1e-14)

    def test_same_seed_same_draws_for_any_worker_count(self, ring_field, rng):
        W, h, _ = ring_field
        kwargs = _draws(rng, 12, len(h))
        sequential = MixingVariablePosteriorSampler(reducer=SequentialReducer()).sample(
            W=W, h=h, rng=2024, **kwargs)
        with ThreadPoolReducer(n_workers=4) as reducer:
            threaded = MixingVariablePosteriorSampler(reducer=reducer).sample(
                W=W, h=h, rng=2024, **kwargs)
        np.testing.assert_array_equal(sequential, threaded)

        other = MixingVariablePosteriorSampler(reducer=SequentialReducer()).sample(
            W=W, h=h, rng=2025, **kwargs)
        assert not np.allclose(sequential, other)

    def test_seed_from_config_and_generator(self, ring_field, rng):
        W, h, _ = ring_field
        kwargs = _draws(rng, 3, len(h))
        from_cfg = MixingVariablePosteriorSampler(MixingCFG(n_workers=1, seed=5)).sample(W=W, h=h, **kwargs)
        from_int = MixingVariablePosteriorSampler(MixingCFG(n_workers=1)).sample(W=W, h=h, rng=5, **kwargs)
        np.testing.assert_array_equal(from_cfg, from_int)

        gen_a = MixingVariablePosteriorSampler(MixingCFG(n_workers=1)).sample(
            W=W, h=h, rng=np.random.default_rng(8), **kwargs)
        gen_b = MixingVariablePosteriorSampler(MixingCFG(n_workers=1)).sample(
            W=W, h=h, rng=np.random.default_rng(8), **kwargs)
        np.testing.assert_array_equal(gen_a, gen_b)

    def test_variants_agree_without_skewness(self, ring_field, rng):
        W, h, _ = ring_field
        kwargs = _draws(rng, 4, len(h))
        kwargs["zeta_star_draws"] = np.zeros(4)
        scaled = MixingVariablePosteriorSampler(MixingCFG(n_workers=1)).sample(W=W, h=h, rng=3, **kwargs)
        unscaled = MixingVariablePosteriorSampler(MixingCFG(chi_variant="unscaled", n_workers=1)).sample(
            W=W, h=h, rng=3, **kwargs)
        np.testing.assert_array_equal(scaled, unscaled)

    def test_sparse_adjacency(self, ring_field, rng):
        W, h, _ = ring_field
        kwargs = _draws(rng, 3, len(h))
        sampler = MixingVariablePosteriorSampler(MixingCFG(n_workers=1))
        dense = sampler.sample(W=W, h=h, rng=4, **kwargs)
        sparse_v = sampler.sample(W=sparse.BCOO.fromdense(W), h=h, rng=4, **kwargs)
        np.testing.assert_allclose(sparse_v, dense, rtol=1e-12)

    def test_no_draws(self):
        W = ring_adjacency(4)
        draws = PosteriorDraws(np.empty((0, 4)), [], [], [])
        V = MixingVariablePosteriorSampler(MixingCFG(n_workers=1)).sample_draws(
            draws, SARFieldData(W=W, h=np.ones(4)))
        assert V.shape == (0, 4)


class TestMixingErrors:
    def test_location_mismatch(self, rng):
        W = ring_adjacency(4)
        kwargs = _draws(rng, 3, 5)
        with pytest.raises(ShapeError):
            MixingVariablePosteriorSampler(MixingCFG(n_workers=1)).sample(W=W, h=np.ones(4), **kwargs)

    def test_per_draw_length_mismatch(self, rng):
        kwargs = _draws(rng, 3, 4)
        kwargs["rho_draws"] = kwargs["rho_draws"][:2]
        with pytest.raises(ShapeError, match="rho"):
            MixingVariablePosteriorSampler(MixingCFG(n_workers=1)).sample(
                W=ring_adjacency(4), h=np.ones(4), **kwargs)

    def test_non_positive_eta_star_draw(self, rng):
        kwargs = _draws(rng, 3, 4)
        kwargs["eta_star_draws"][1] = 0.0
        with pytest.raises(ParameterError):
            MixingVariablePosteriorSampler(MixingCFG(n_workers=1)).sample(
                W=ring_adjacency(4), h=np.ones(4), **kwargs)

    def test_non_positive_scale(self, rng):
        with pytest.raises(ParameterError):
            MixingVariablePosteriorSampler(MixingCFG(n_workers=1)).sample(
                W=ring_adjacency(4), h=np.array([1.0, -1.0, 1.0, 1.0]), **_draws(rng, 2, 4))

    def test_unknown_variant(self):
        with pytest.raises(ValueError):
            MixingVariablePosteriorSampler(MixingCFG(chi_variant="raw"))


def test_posterior_draws_views(rng):
    draws = PosteriorDraws(**{
        "x": rng.normal(size=(6, 4)),
        "rho": np.linspace(0.0, 0.5, 6),
        "eta_star": np.ones(6),
        "zeta_star": np.zeros(6),
    })
    assert len(draws) == 6 and draws.n_locations == 4
    head = draws.prefix(2)
    assert len(head) == 2
    np.testing.assert_array_equal(head.rho, draws.rho[:2])
    picked = draws.batch(np.array([5, 0]))
    np.testing.assert_array_equal(picked.x, draws.x[[5, 0]])


class TestSummaries:
    def test_column_summaries(self):
        draws = np.array([[1.0, 10.0], [2.0, 20.0], [3.0, 30.0], [4.0, 40.0], [5.0, 50.0]])
        s = summarize_draws(draws, probs=(0.25, 0.5))
        np.testing.assert_allclose(s.mean, [3.0, 30.0])
        np.testing.assert_allclose(s.sd, [np.sqrt(2.5), 10 * np.sqrt(2.5)])
        np.testing.assert_allclose(s.quantiles, [[2.0, 20.0], [3.0, 30.0]])
        assert s.probs == (0.25, 0.5)

    def test_single_draw(self):
        s = summarize_draws(np.array([[1.0, 2.0]]))
        np.testing.assert_array_equal(s.sd, [0.0, 0.0])
        assert s.quantiles.shape == (3, 2)

    def test_rejects_vector(self):
        with pytest.raises(ShapeError):
            summarize_draws(np.ones(4))

    def test_mixing_summary_exceedance(self):
        V = np.array([[0.5, 2.0], [1.5, 3.0], [0.8, 0.2], [1.2, 4.0]])
        s = mixing_summary(V)
        np.testing.assert_allclose(s.exceedance, [0.5, 0.75])
        np.testing.assert_allclose(s.mean, V.mean(axis=0))
        assert summarize_draws(V).exceedance is None

    def test_latent_field_summary(self, rng):
        X = rng.normal(size=(50, 3))
        s = latent_field_summary(X, probs=(0.5,))
        np.testing.assert_allclose(s.quantiles[0], np.median(X, axis=0))
