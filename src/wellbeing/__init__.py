"""Wellbeing: habit and wellness challenge tracking."""
