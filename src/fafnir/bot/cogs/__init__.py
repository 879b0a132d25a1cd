"""
Cogs package for the bot.
Each module defines a cog class and a setup function that registers it with the
bot and its command handlers with the router.
The cogs are loaded explicitly by ``fafnir.main.load_cogs``.
"""
