"""HTTP backend for Fantasy Zoo: per-session zoos and a shared leaderboard"""
