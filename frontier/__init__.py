"""Frontier Analyst: portfolio statistics, efficient frontier sampling and risk attribution."""
