"""Sequential pipeline executor and step abstractions."""
