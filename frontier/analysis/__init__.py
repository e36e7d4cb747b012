from .statistics import compute_statistics
from .evaluator import evaluate_portfolio, normalize_weights
from .frontier import sample_frontier, efficient_curve, capital_market_line
from .risk_decomposition import decompose_risk
from .optimizer import PortfolioOptimizer, validate_positions
