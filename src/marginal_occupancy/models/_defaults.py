"""Default settings shared by the occupancy estimators."""

_DEFAULT_MAXITER = 500
_DEFAULT_TOL = 1e-8
_DEFAULT_OPTIMIZATION_METHOD = "L-BFGS-B"

# Parameters are optimized on the logit scale; this keeps the fitted
# probabilities within about 2e-9 of the boundaries.
_LOGIT_BOUND = 20.0
_DEFAULT_INITIAL_PROBABILITY = 0.5

_DEFAULT_DYNAMIC_LIKELIHOOD = "implicit"
