"""Tests - Test suite for the prover, verifier and their building blocks."""
