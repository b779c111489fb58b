"""repict command line: decode an image, run filters, encode the result."""
