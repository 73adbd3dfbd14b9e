"""
scorecard core: evaluation harness, configuration, logging and LLM adapters.
"""
