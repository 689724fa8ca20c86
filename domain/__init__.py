"""Describes the CollegeMeals domain. Centres around turning ingredients into recipes.

Recipe creation is handed to a large language model served behind an api.
Everything it sends back is treated as untrusted text: fences stripped, JSON
parsed, ids replaced. When that goes wrong a small fixed list is served instead.

The rest is bookkeeping for a user: a profile with a trial and a plan,
a pantry, and the recipes they chose to keep.
"""
