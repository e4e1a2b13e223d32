"""MoneyBook: percentage-based money allocation service."""
