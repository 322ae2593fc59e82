import json
from discord.ext import commands
import discord
import config

LEADERBOARD_SIZE = 15

def setup(bot: commands.Bot):
    # --- Load scores once ---
    if not hasattr(bot, "scores"):
        try:
            with open(config.SCORES_FILE, "r", encoding="utf-8") as f:
                bot.scores = json.load(f)
        except FileNotFoundError:
            bot.scores = {}
        except json.JSONDecodeError:
            print(f"⚠️ {config.SCORES_FILE} is not valid JSON; starting with empty scores.")
            bot.scores = {}

    # === Save scores helper ===
    def save_scores():
        with open(config.SCORES_FILE, "w", encoding="utf-8") as f:
            json.dump(bot.scores, f, indent=2)

    def record_result(user_id, name, round_won=False, match_won=False):
        """Bump a player's tallies and persist them."""
        entry = bot.scores.get(str(user_id), {})
        bot.scores[str(user_id)] = {
            "name": name,
            "hl_score": entry.get("hl_score", 0) + (1 if round_won else 0),
            "hl_matches": entry.get("hl_matches", 0) + (1 if match_won else 0),
        }
        save_scores()

    bot.save_scores = save_scores
    bot.record_result = record_result

    # --- Leaderboard ---
    @bot.command(name="points", aliases=["leaderboard", "score", "scores"])
    async def leaderboard(ctx, category: str = "rounds"):
        """Show the top players by rounds won (or `!points matches`)."""
        if category.lower().startswith("match"):
            key, title = "hl_matches", "🏆 High-Low Match Winners"
        else:
            key, title = "hl_score", "🔢 High-Low Rounds Won"

        valid = {uid: info for uid, info in bot.scores.items() if info.get(key, 0) > 0}
        if not valid:
            await ctx.send("No scores yet for this category!")
            return

        ranked = sorted(valid.items(), key=lambda x: x[1][key], reverse=True)
        msg = f"**{title}**\n"
        user_rank_info = None
        for idx, (uid, info) in enumerate(ranked, 1):
            if idx <= LEADERBOARD_SIZE:
                msg += f"{idx}. {info.get('name', 'Unknown User')}: {info.get(key, 0)}\n"
            if uid == str(ctx.author.id):
                user_rank_info = (idx, info.get(key, 0))

        # If user is not in the top list, append their rank
        if user_rank_info and user_rank_info[0] > LEADERBOARD_SIZE:
            msg += f"\n{user_rank_info[0]}. {ctx.author.display_name}: {user_rank_info[1]}"

        await ctx.send(msg)

    @bot.command(name="dump_scores")
    @commands.has_permissions(manage_messages=True)
    async def dump_scores_file(ctx):
        """Send the current scores file (only usable from the test channel, when one is set)."""
        if config.TEST_GENERAL_CHANNEL_ID and ctx.channel.id != config.TEST_GENERAL_CHANNEL_ID:
            await ctx.send("⚠️ Cannot use this command here.")
            return
        try:
            await ctx.send(file=discord.File(config.SCORES_FILE))
            await ctx.send("✅ Scores dumped successfully.")
        except FileNotFoundError:
            await ctx.send("⚠️ No scores file found.")

    print("✅ utils.py loaded successfully.")
