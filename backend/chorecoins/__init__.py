"""Chore coins: turn completed chores into monthly allowance."""
