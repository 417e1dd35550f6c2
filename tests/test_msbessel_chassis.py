import math

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from specfunjax import msbessel

from tests._test_checks import _check, _check_rel


INF = math.inf

REFERENCE = {
    ("i", 2): [
        (0.5, 0.016966360360861979468),
        (0.99, 0.070040668004228636975),
        (1.01, 0.073104528235463453923),
        (1.5, 0.17566633204538633850),
        (2.0, 0.35185608855341782704),
        (5.0, 7.7163253464501406776),
        (10.0, 803.96599849134982366),
        (20.0, 10400728.876597379024),
        (23.75, 381760138.26834340988),
        (24.25, 618112668.00988761140),
        (50.0, 48798448435061526031.99),
        (100.0, 1.3041400313520981128e41),
        (200.0, 1.7795315274091181126e84),
        (500.0, 1.3951875076523346203e214),
        (1000.0, INF),
        (INF, INF),
    ],
    ("i", 6): [
        (0.5, 1.1659220847153854971e-7),
        (2.0, 5.4059520862157675747e-4),
        (10.0, 130.99688270185084245),
        (24.25, 291208025.69083990372),
        (500.0, 1.3458063196020732025e214),
    ],
    ("i", 20): [
        (0.5, 7.2938712744408897058e-32),
        (10.0, 2.3715435772561025196e-5),
        (199.0, 2.3209762568271530220e83),
        (201.0, 1.7158831560062220607e84),
        (500.0, 9.2189227793576672973e213),
    ],
    ("i", 100): [
        (0.5, 5.8909641412779681200e-220),
        (2.0, 9.5542510297070692200e-160),
        (50.0, 2.3418937401088286619e-17),
        (100.0, 373598874159695115492.11),
        (500.0, 5.9040484441551487262e209),
        (1000.0, INF),
        (4999.0, INF),
        (10000.0, INF),
    ],
    ("ic", 2): [
        (0.5, 0.010290617742595889685),
        (2.0, 0.047618543402903478511),
        (10.0, 0.036499999862933284108),
        (20.0, 0.021437499999999999877),
        (50.0, 0.009412),
        (100.0, 0.0048515),
        (1000.0, 4.985015e-4),
        (INF, 0.0),
    ],
    ("ic", 6): [
        (0.5, 7.071674912159516399e-8),
        (20.0, 0.0085986308593749997063),
        (50.0, 0.0065464340128),
        (1000.0, 4.896043723573076975e-4),
    ],
    ("ic", 20): [
        (10.0, 1.0766791183609912162e-9),
        (199.0, 8.7310967153629323767e-4),
        (201.0, 8.7356826471124645788e-4),
    ],
    ("ic", 100): [
        (0.5, 3.573050366952793050e-220),
        (100.0, 1.3898161964299132789e-23),
        (1000.0, 3.2101923796404594384e-6),
        (4999.0, 3.6419383439970239801e-5),
        (5001.0, 3.6419530574819279664e-5),
        (10000.0, 3.0174645068120473527e-5),
    ],
    ("k", 2): [
        (0.0, INF),
        (0.5, 23.048165069080070097),
        (1.0, 2.5751560882000962512),
        (2.0, 0.21991983525949562433),
        (10.0, 6.0381906584104852542e-6),
        (100.0, 3.8327942780942672926e-46),
        (500.0, 1.4334818720197228280e-220),
        (1000.0, 0.0),
        (INF, 0.0),
    ],
    ("k", 10): [
        (0.5, 1332095875326.0714489),
        (5.0, 7.1060633269525929316),
        (10.0, 6.3073886444940276015e-4),
        (500.0, 1.5904206975168576985e-220),
    ],
    ("k", 100): [
        (0.5, 1.6890487472156316052e217),
        (10.0, 5.1868644491662527621e85),
        (50.0, 3804001347627.3901321),
        (100.0, 9.4397758890859536459e-26),
        (500.0, 3.3210840321244211318e-216),
    ],
    ("kc", 2): [
        (0.0, INF),
        (0.5, 38.0),
        (1.0, 7.0),
        (2.0, 1.625),
        (5.0, 0.344),
        (1000.0, 0.001003003),
        (INF, 0.0),
    ],
    ("kc", 10): [
        (0.5, 2196254804262.0),
        (2.0, 2127567.51416015625),
        (10.0, 13.89294802325),
        (1000.0, 0.0010565110581718461026),
    ],
    ("kc", 100): [
        (0.5, 2.7847705967838156732e217),
        (100.0, 2537522338235460254.6074),
        (1000.0, 0.15497325543253054576),
    ],
}

REFERENCE_CASES = [
    (kind, order, x, expected)
    for (kind, order), rows in REFERENCE.items()
    for x, expected in rows
]


def _eval(fn, kind, x):
    return getattr(fn, f"sbessel_{kind}")(x)


@pytest.mark.parametrize("kind, order, x, expected", REFERENCE_CASES)
def test_reference_values(kind, order, x, expected):
    fn = msbessel.instance_of(order)
    _check_rel(_eval(fn, kind, x), expected, rtol=1e-10)


def test_closed_forms_orders_0_and_1():
    for x in (1e-3, 0.5, 3.0, 23.9, 24.1, 60.0):
        _check_rel(msbessel.msbessel_i0(x), math.sinh(x) / x, rtol=1e-13)
        _check_rel(msbessel.msbessel_ic0(x), math.sinh(x) / x * math.exp(-x), rtol=1e-13)
        _check_rel(msbessel.msbessel_k0(x), math.exp(-x) / x, rtol=1e-14)
        _check_rel(msbessel.msbessel_kc0(x), 1.0 / x, rtol=1e-15)
        if x >= 0.5:
            i1 = (math.cosh(x) - math.sinh(x) / x) / x
            _check_rel(msbessel.msbessel_i1(x), i1, rtol=1e-10)
            _check_rel(msbessel.msbessel_ic1(x), i1 * math.exp(-x), rtol=1e-10)
        _check_rel(msbessel.msbessel_k1(x), math.exp(-x) * (1.0 / x + 1.0 / (x * x)), rtol=1e-14)
        _check_rel(msbessel.msbessel_kc1(x), 1.0 / x + 1.0 / (x * x), rtol=1e-14)


def test_scaled_k1_at_ten():
    _check_rel(msbessel.msbessel_kc1(10.0), 0.11, rtol=1e-14)
    _check_rel(msbessel.instance_of(1).sbessel_k(10.0) * math.exp(10.0), 0.11, rtol=1e-13)


def test_i0_shifted_form_reaches_overflow_limit():
    # sinh(x)/x is finite at x = 712 although exp(712) is not
    v = float(msbessel.msbessel_i0(712.0))
    _check(math.isfinite(v))
    _check(float(msbessel.msbessel_i0(720.0)) == INF)


def test_boundary_values():
    for n in (0, 1, 2, 9, 100):
        fn = msbessel.instance_of(n)
        _check_rel(fn.sbessel_i(0.0), 1.0 if n == 0 else 0.0)
        _check_rel(fn.sbessel_ic(0.0), 1.0 if n == 0 else 0.0)
        _check_rel(fn.sbessel_k(0.0), INF)
        _check_rel(fn.sbessel_kc(0.0), INF)
        _check_rel(fn.sbessel_i(INF), INF)
        _check_rel(fn.sbessel_ic(INF), 0.0)
        _check_rel(fn.sbessel_k(INF), 0.0)
        _check_rel(fn.sbessel_kc(INF), 0.0)
        for kind in ("i", "k", "ic", "kc"):
            _check_rel(_eval(fn, kind, -0.5), math.nan)
            _check_rel(_eval(fn, kind, math.nan), math.nan)


@pytest.mark.parametrize("n", [1, 2, 6, 15, 50, 99])
@pytest.mark.parametrize("x", [0.4, 1.5, 7.0, 30.0, 180.0])
def test_recurrence_law(n, x):
    # scaled forms obey the same recurrence as the unscaled ones
    ic = [float(msbessel.msbessel_ic(x, order)) for order in (n - 1, n, n + 1)]
    kc = [float(msbessel.msbessel_kc(x, order)) for order in (n - 1, n, n + 1)]
    c = (2 * n + 1) / x
    if all(math.isfinite(v) for v in ic) and ic[0] > 0.0:
        _check(abs(ic[0] - ic[2] - c * ic[1]) <= 1e-10 * max(ic[0], c * ic[1]), f"ic_{n}({x})")
    if all(math.isfinite(v) for v in kc):
        _check(abs(kc[2] - kc[0] - c * kc[1]) <= 1e-10 * kc[2], f"kc_{n}({x})")


@pytest.mark.parametrize(
    "n, boundary",
    [(2, 1.0), (2, 2.0), (6, 1.0), (6, 18.0), (20, 200.0), (100, 1.0), (100, 5000.0)],
)
def test_ic_regime_continuity(n, boundary):
    fn = msbessel.instance_of(n)
    below = float(fn.sbessel_ic(boundary * (1.0 - 1e-12)))
    above = float(fn.sbessel_ic(boundary * (1.0 + 1e-12)))
    _check(abs(below - above) <= 1e-9 * abs(above))


@pytest.mark.parametrize("n", [0, 1, 3, 12])
def test_large_x_switch_continuity(n):
    fn = msbessel.instance_of(n)
    for kind in ("i", "ic"):
        below = float(_eval(fn, kind, 24.0 * (1.0 - 1e-12)))
        above = float(_eval(fn, kind, 24.0 * (1.0 + 1e-12)))
        _check(abs(below - above) <= 1e-9 * abs(above))


@pytest.mark.parametrize("n", [2, 10, 60])
def test_k_raw_switch_continuity(n):
    fn = msbessel.instance_of(n)
    below = float(fn.sbessel_k(2.0 * (1.0 - 1e-12)))
    above = float(fn.sbessel_k(2.0 * (1.0 + 1e-12)))
    _check(abs(below - above) <= 1e-9 * abs(above))


@pytest.mark.parametrize("n", [0, 1, 2, 7, 30])
@pytest.mark.parametrize("x", [0.5, 2.0, 10.0, 50.0])
def test_scaled_round_trip(n, x):
    fn = msbessel.instance_of(n)
    _check_rel(fn.sbessel_ic(x) * math.exp(x), float(fn.sbessel_i(x)), rtol=1e-9)
    _check_rel(fn.sbessel_kc(x) * math.exp(-x), float(fn.sbessel_k(x)), rtol=1e-9)


def test_handle_parameters():
    fn = msbessel.instance_of(10)
    _check(fn.order == 10)
    _check(fn.upper_n == int(4.6 * 10) + 3)
    _check(fn.boundary_x == 50.0)


def test_factory_singletons_and_identity():
    _check(msbessel.instance_of(0) is msbessel.instance_of(0))
    _check(msbessel.instance_of(1) is msbessel.instance_of(1))
    a = msbessel.instance_of(12)
    _check(a == msbessel.instance_of(12))
    _check(hash(a) == hash(msbessel.instance_of(12)))
    _check(repr(a) == "ModifiedSphericalBessel(12)")
    # families with the same order are distinct
    from specfunjax import sbessel

    _check(a != sbessel.instance_of(12))


def test_factory_rejects_bad_orders():
    with pytest.raises(ValueError, match="out of supported range"):
        msbessel.instance_of(101)
    with pytest.raises(ValueError, match="out of supported range"):
        msbessel.instance_of(-3)
    with pytest.raises(TypeError):
        msbessel.instance_of("2")
    _check(msbessel.accepts_parameter(50))
    _check(not msbessel.accepts_parameter(101))
    _check(not msbessel.accepts_parameter(None))


def test_functional_api_and_eval():
    x = jnp.array([0.2, 1.5, 9.0, 40.0, 300.0], dtype=jnp.float64)
    fn = msbessel.instance_of(8)
    pairs = [
        (msbessel.msbessel_i(x, order=8), fn.sbessel_i(x)),
        (msbessel.msbessel_k(x, order=8), fn.sbessel_k(x)),
        (msbessel.msbessel_ic(x, order=8), fn.sbessel_ic(x)),
        (msbessel.msbessel_kc(x, order=8), fn.sbessel_kc(x)),
        (msbessel.msbessel_eval(x, 8, "kc"), fn.sbessel_kc(x)),
    ]
    for got, expected in pairs:
        np.testing.assert_allclose(np.asarray(got), np.asarray(expected), rtol=1e-14)
    with pytest.raises(ValueError):
        msbessel.msbessel_eval(x, 8, "j")


def test_jit_and_vectorization():
    x = jnp.array([[0.0, 0.5], [3.0, 30.0], [400.0, 2000.0]], dtype=jnp.float64)
    for n in (0, 1, 5, 80):
        fn = msbessel.instance_of(n)
        for kind in ("i", "k", "ic", "kc"):
            out = _eval(fn, kind, x)
            _check(out.shape == (3, 2))
            _check(out.dtype == jnp.float64)
            for idx in np.ndindex(3, 2):
                _check_rel(out[idx], float(_eval(fn, kind, float(x[idx]))), rtol=1e-14)


def test_grad_path():
    def loss(v):
        return msbessel.msbessel_kc(v, order=4)

    g = jax.grad(loss)(jnp.float64(3.0))
    _check(bool(jnp.isfinite(g)))
    _check(float(g) < 0.0)


@pytest.mark.parametrize(
    "n, x",
    [
        (4, 0.5),  # power series
        (4, 3.0),  # backward recurrence
        (2, 10.0),  # asymptotic expansion
        (3, 30.0),
        (30, 100.0),
    ],
)
def test_grad_matches_derivative_in_each_regime(n, x):
    g_i = jax.grad(lambda v: msbessel.msbessel_i(v, order=n))(jnp.float64(x))
    # i_n' = i_{n-1} - (n+1)/x i_n
    expected_i = float(msbessel.msbessel_i(x, order=n - 1)) - (n + 1) / x * float(msbessel.msbessel_i(x, order=n))
    _check_rel(g_i, expected_i, rtol=1e-8)

    g_ic = jax.grad(lambda v: msbessel.msbessel_ic(v, order=n))(jnp.float64(x))
    ic_n = float(msbessel.msbessel_ic(x, order=n))
    expected_ic = float(msbessel.msbessel_ic(x, order=n - 1)) - (n + 1) / x * ic_n - ic_n
    _check_rel(g_ic, expected_ic, rtol=1e-8)


def test_grad_is_finite_across_orders():
    xs = jnp.array([0.5, 1.0, 2.5, 5.0, 30.0], dtype=jnp.float64)
    for n in (0, 1, 2, 3, 10, 100):
        for kind in ("i", "ic"):
            g = jax.vmap(jax.grad(lambda v: msbessel.msbessel_eval(v, n, kind)))(xs)
            _check(bool(jnp.all(jnp.isfinite(g))), f"{kind} order {n}")
