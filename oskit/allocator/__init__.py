"""Simulated heap allocator with best-fit placement, splitting and coalescing."""