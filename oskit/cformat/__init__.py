"""A compact printf family and its number-rendering helpers."""