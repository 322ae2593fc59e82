import os

import discord
from discord.ext import commands

import config
import highlow_bot
import utils

os.environ["DISCORD_NO_AUDIO"] = "1"

intents = discord.Intents.default()
intents.message_content = True
bot = commands.Bot(command_prefix=config.COMMAND_PREFIX, intents=intents)

# === Load game modules ===
utils.setup(bot)
highlow_bot.setup(bot)


@bot.command(name="rules", aliases=["howto"])
async def rules(ctx):
    """Explain how a High-Low round works."""
    await ctx.send(
        "**Math High-Low** 🎲\n"
        f"• Both you and the AI get {config.NUMBERS_PER_HAND}+ number cards (0–10) and the operators + - ÷.\n"
        "• A **×** card must be used as an operator exactly once each, and disables one base operator.\n"
        "• A **√** card must root exactly one number each.\n"
        "• Expressions are worked out strictly left to right: `2 + 3 × 4` is **20**.\n"
        f"• Aim for the target ({' or '.join(map(str, config.TARGET_VALUES))}); closer side wins the bet.\n"
        "Commands: `!highlow`, `!hand`, `!pick <slot> [√]`, `!op <+ - ÷ ×>`, `!reset`, "
        "`!target <n>`, `!bet <n>`, `!submit`, `!quit`, `!solve ...`, `!points`"
    )


@bot.event
async def on_ready():
    print(f"✅ Logged in as {bot.user} (id: {bot.user.id})")

    # --- Start background tasks ---
    if not bot.highlow_clock.is_running():
        bot.highlow_clock.start()
        print("⏰ Started High-Low round clock.")


# === Run bot ===
if __name__ == "__main__":
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        raise SystemExit("Environment variable DISCORD_BOT_TOKEN is missing.")
    bot.run(token)
