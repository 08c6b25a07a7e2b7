#!/usr/bin/env python3
"""
predictivecontrol MPC Benchmark: FGM against SLSQP on condensed QPs
"""

import sys
sys.path.insert(0, '../python')

import time
import numpy as np

import predictivecontrol
from predictivecontrol.fgm import Best, fast_gradient_method, solve_inequality_qp, upper_iteration_bound
from predictivecontrol.mpc import BoxConstraints, ConstrainedLQR, LinearSystem, condense, condition_number

print(f"predictivecontrol version: {predictivecontrol.__version__}")
print()


def random_system(n_x, n_u, seed=42):
    """Random stable system with spectral radius 0.95."""
    rng = np.random.default_rng(seed)

    A = rng.standard_normal((n_x, n_x))
    A *= 0.95 / max(abs(np.linalg.eigvals(A)))
    B = rng.standard_normal((n_x, n_u))

    return LinearSystem(A, B)


def generate_problem(n_x, n_u, N, seed=42):
    """Input-constrained regulation problem |u| <= 1."""
    system = random_system(n_x, n_u, seed)
    F = np.vstack([np.eye(n_u), -np.eye(n_u)])
    return ConstrainedLQR(
        system, N, np.eye(n_x), 0.1 * np.eye(n_u), P="dare",
        F=F, g=np.ones(2 * n_u), u_lower=-1.0, u_upper=1.0,
    )


def solve_fgm(qp, x0, **kwargs):
    """Solve with the Fast Gradient Method and a box projection."""
    box = BoxConstraints(-1.0, 1.0, dim=qp.n_variables)

    start = time.perf_counter()
    result = fast_gradient_method(
        qp.H.data, qp.linear_term(x0), box,
        stop_conditions=[Best(kwargs.get('tol', 1e-6))],
        max_iter=kwargs.get('max_iters', 5000),
    )
    elapsed = time.perf_counter() - start

    return {
        'time': elapsed,
        'x': result.x,
        'status': result.status.value,
        'iterations': result.iterations,
    }


def solve_slsqp(qp, x0):
    """Solve with SLSQP on the explicit inequality rows."""
    start = time.perf_counter()
    x = solve_inequality_qp(qp.H.data, qp.linear_term(x0), qp.G.data, qp.constraint_rhs(x0))
    elapsed = time.perf_counter() - start

    return {'time': elapsed, 'x': x}


def objective(qp, x0, x):
    return 0.5 * x @ qp.H.data @ x + qp.linear_term(x0) @ x


def benchmark_single(n_x, n_u, N, seed=42):
    """Benchmark a single MPC instance."""
    print(f"  Generating problem: n_x={n_x}, n_u={n_u}, N={N}")
    problem = generate_problem(n_x, n_u, N, seed)

    start = time.perf_counter()
    qp = condense(problem)
    condense_time = time.perf_counter() - start

    x0 = 5.0 * np.random.default_rng(seed).standard_normal(n_x)

    results = {'condense': condense_time}

    res = solve_slsqp(qp, x0)
    results['slsqp'] = res
    print(f"    SLSQP:   {res['time']*1000:8.1f} ms, obj={objective(qp, x0, res['x']):12.4f}")

    res = solve_fgm(qp, x0)
    results['fgm'] = res
    print(f"    FGM:     {res['time']*1000:8.1f} ms, obj={objective(qp, x0, res['x']):12.4f}, "
          f"iters={res['iterations']}, status={res['status']}")

    return results


def benchmark_horizon():
    """Benchmark across horizon lengths."""
    print("=" * 70)
    print("Horizon Scaling Benchmark")
    print("=" * 70)

    sizes = [
        (4, 2, 5),
        (4, 2, 10),
        (4, 2, 20),
        (8, 3, 20),
        (8, 3, 40),
    ]

    all_results = []

    for n_x, n_u, N in sizes:
        print(f"\nProblem size: {N * n_u} variables, {2 * N * n_u} constraints")
        res = benchmark_single(n_x, n_u, N)
        all_results.append((n_x, n_u, N, res))

    print("\n" + "=" * 70)
    print("Summary")
    print("=" * 70)
    print(f"{'n_x':>5} {'n_u':>5} {'N':>5} {'condense (ms)':>14} {'SLSQP (ms)':>12} {'FGM (ms)':>10} {'Speedup':>10}")
    print("-" * 70)

    for n_x, n_u, N, res in all_results:
        slsqp_time = res['slsqp']['time'] * 1000
        fgm_time = res['fgm']['time'] * 1000
        print(f"{n_x:>5} {n_u:>5} {N:>5} {res['condense']*1000:>14.2f} "
              f"{slsqp_time:>12.1f} {fgm_time:>10.1f} {slsqp_time / fgm_time:>10.2f}x")


def benchmark_certification():
    """Compare the a priori iteration bound with observed iterations."""
    print("\n" + "=" * 70)
    print("Iteration Bound vs Observed Iterations")
    print("=" * 70)
    print(f"{'N':>5} {'kappa':>12} {'bound':>8} {'observed':>10}")
    print("-" * 70)

    n_u = 2
    for N in (5, 10, 20):
        problem = generate_problem(4, n_u, N)
        qp = condense(problem)

        # Input set shifted away from the origin: 0.5 <= u <= 1
        g = qp.g.data.copy().reshape(N, 2 * n_u)
        g[:, n_u:] = -0.5
        bound = upper_iteration_bound(1e-3, qp.G.data, g.ravel(), H=qp.H.data)

        result = fast_gradient_method(
            qp.H.data, qp.linear_term(np.ones(4)), BoxConstraints(0.5, 1.0, dim=qp.n_variables),
            stop_conditions=[Best(1e-3)], max_iter=5000,
        )

        print(f"{N:>5} {condition_number(problem):>12.2f} {bound:>8d} {result.iterations:>10d}")


if __name__ == "__main__":
    benchmark_horizon()
    benchmark_certification()
