"""Zoo simulation: run state, per-step systems, engine and scheduler"""
