"""brokerai.backtest

Backtest engine.

- strategies: one rule per strategy kind (momentum implemented)
- simulator: single pass over a bar window -> BacktestResult
- engine: request validation, run guard, persistence
"""
