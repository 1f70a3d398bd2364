"""
Reaction sources S(x, q, u, t) entering the balance law as u_t + (sigma + c u)_x = f + S.
"""

import numpy as np

from .diffusion import Coefficient, per_variable
from .physics_case import ReactionModel, zero_value


def no_reaction(n_var: int) -> ReactionModel:
    return ReactionModel(zero_value)


def constant_source(n_var: int, strength: Coefficient = 1.0) -> ReactionModel:
    """S_v = s_v"""
    s = per_variable(strength, n_var, "strength")

    def source(var, x, q, u, t):
        return np.full_like(x, s[var], dtype=float)

    return ReactionModel(source)


def linear_decay(n_var: int, rate: Coefficient = 1.0) -> ReactionModel:
    """S_v = -beta_v u_v"""
    beta = per_variable(rate, n_var, "rate")

    def source(var, x, q, u, t):
        return -beta[var] * u[var]

    def dsource_du(var, x, q, u, t):
        out = np.zeros_like(u, dtype=float)
        out[var] = -beta[var]
        return out

    return ReactionModel(source, dsource_du=dsource_du)


def fisher_kpp(n_var: int, rate: Coefficient = 1.0) -> ReactionModel:
    """S_v = r_v u_v (1 - u_v)"""
    r = per_variable(rate, n_var, "rate")

    def source(var, x, q, u, t):
        return r[var] * u[var] * (1.0 - u[var])

    def dsource_du(var, x, q, u, t):
        out = np.zeros_like(u, dtype=float)
        out[var] = r[var] * (1.0 - 2.0 * u[var])
        return out

    return ReactionModel(source, dsource_du=dsource_du)
