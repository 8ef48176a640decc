"""Tests for lessonsim."""
