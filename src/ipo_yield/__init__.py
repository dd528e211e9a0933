"""Annualized return estimation for IPO offline share allotment."""
