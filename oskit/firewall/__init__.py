"""Packet filtering with a ring buffer, a producer, ordered consumer threads and two commands."""