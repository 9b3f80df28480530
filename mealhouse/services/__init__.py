"""Business logic: accounts, houses and plans, and the order lifecycle."""
