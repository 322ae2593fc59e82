import asyncio
import discord
from discord.ext import commands, tasks
import config
from cards import BASE_OPERATORS, Hand, OperatorType
from expression import ExpressionError
from rounds import Match, Phase, Winner
from solver import solve

SQRT_WORDS = {"√", "r", "root", "sqrt"}
MAX_SOLVE_NUMBERS = 6

def setup(bot: commands.Bot):
    # --- Active matches and locks, one per channel ---
    if not hasattr(bot, "hl_tables"):
        bot.hl_tables = {}
    if not hasattr(bot, "hl_locks"):
        bot.hl_locks = {}
    # forced submits started by the round clock
    if not hasattr(bot, "hl_tasks"):
        bot.hl_tasks = set()

    # --- Emoji maps ---
    NUMBER_EMOJIS = {
        0: ":zero:", 1: ":one:", 2: ":two:", 3: ":three:", 4: ":four:", 5: ":five:",
        6: ":six:", 7: ":seven:", 8: ":eight:", 9: ":nine:", 10: ":number_10:",
    }

    WINNER_LINES = {
        Winner.PLAYER: "🏆 You win the round!",
        Winner.AI: "🤖 The AI wins the round.",
        Winner.DRAW: "🤝 It's a draw.",
        Winner.INVALID: "❌ Neither side played a valid expression.",
    }

    # --- Helpers ---
    def to_emoji(num: int) -> str:
        return NUMBER_EMOJIS.get(num, str(num))

    def fmt(value) -> str:
        return f"{value:.4g}"

    def render_hand(match: Match) -> str:
        rnd = match.round
        hand = rnd.player_hand
        cards = []
        for slot, card in enumerate(hand.number_cards):
            mark = "~~" if rnd.player.used[slot] else ""
            cards.append(f"`{slot + 1}` {mark}{to_emoji(card.value)}{mark}")
        ops = " ".join(
            f"~~{op.symbol}~~" if not hand.is_operator_enabled(op) else op.symbol
            for op in BASE_OPERATORS
        )
        specials = []
        if hand.multiply_budget:
            specials.append(f"× ×{hand.multiply_budget}")
        if hand.sqrt_budget:
            specials.append(f"√ ×{hand.sqrt_budget}")
        expr = rnd.player.current.display_form() or "…"
        return (
            f":dart:---> **{rnd.target}** <---:dart:   💰 Bet **{rnd.bet}**\n"
            f"|- {'  '.join(cards)} -|\n"
            f"Operators: {ops}" + (f"   Specials: {', '.join(specials)}" if specials else "") + "\n"
            f"Expression: `{expr}`"
        )

    def render_side(label, expression, value, distance, error) -> str:
        if error is not None:
            return f"{label}: ⚠️ {error.message}"
        return f"{label}: `{expression}` = **{fmt(value)}** ({fmt(distance)} away)"

    def render_result(result, match: Match) -> str:
        lines = [
            f"🎯 Target **{result.target}** · Bet **{result.bet}**",
            render_side("🧑 You", result.player_expression, result.player_value,
                        result.player_distance, result.player_error),
            render_side("🤖 AI", result.ai_expression, result.ai_value,
                        result.ai_distance, result.ai_error),
            WINNER_LINES[result.winner],
            f"💰 Credits — You: **{match.player_credits}** · AI: **{match.ai_credits}**",
        ]
        return "\n".join(lines)

    def lock_for(cid):
        return bot.hl_locks.setdefault(cid, asyncio.Lock())

    def allowed_channel(ctx) -> bool:
        return not config.HIGHLOW_CHANNEL_ID or ctx.channel.id in (
            config.HIGHLOW_CHANNEL_ID, config.TEST_GENERAL_CHANNEL_ID)

    async def table_for(ctx):
        """Return the caller's open round, or explain why there isn't one."""
        match = bot.hl_tables.get(ctx.channel.id)
        if match is None:
            await ctx.send("⚠️ No High-Low match here. Start one with `!highlow`.")
            return None
        if match.player_id != ctx.author.id:
            await ctx.send("⚠️ This match belongs to someone else.")
            return None
        if match.round is None or match.round.phase is not Phase.WAITING:
            await ctx.send("⏳ Hold on, the next round is being dealt.")
            return None
        return match

    # --- Round flow ---
    async def deal_round(channel, match: Match):
        # the solver plays while dealing; keep it off the event loop
        await asyncio.to_thread(match.new_round)
        await channel.send(
            f"🃏 Round {match.rounds_played + 1} — you have "
            f"{config.ROUND_DURATION}s (submit unlocks after {config.SUBMISSION_UNLOCK_TIME}s).\n"
            f"{render_hand(match)}"
        )

    async def finish_round(channel, forced=False):
        cid = channel.id
        async with lock_for(cid):
            match = bot.hl_tables.get(cid)
            if match is None or match.round is None or match.round.phase is not Phase.WAITING:
                return
            result = match.finish_round()
            player_name = match.player_name
            if match.over:
                del bot.hl_tables[cid]

        if hasattr(bot, "record_result"):
            bot.record_result(match.player_id, player_name,
                              round_won=result.winner is Winner.PLAYER,
                              match_won=match.winner is Winner.PLAYER)

        prefix = "⏰ Time's up! Submitting what you have.\n" if forced else ""
        try:
            await channel.send(prefix + render_result(result, match))
            if match.over:
                if match.winner is Winner.PLAYER:
                    await channel.send(f"🎉 {player_name} beat the AI in {match.rounds_played} rounds!")
                else:
                    await channel.send(f"💀 The AI cleaned you out after {match.rounds_played} rounds.")
        except discord.HTTPException as e:
            # the round is already settled; carry on to the next deal
            print(f"⚠️ Could not post High-Low results in channel {cid}: {e}")
        if match.over:
            return

        await asyncio.sleep(config.RESULTS_DISPLAY_DURATION)
        async with lock_for(cid):
            if bot.hl_tables.get(cid) is not match:
                return  # quit while results were showing
            try:
                await deal_round(channel, match)
            except discord.HTTPException as e:
                # the new round is open, `!hand` shows it again
                print(f"⚠️ Could not post the next High-Low round in channel {cid}: {e}")

    # --- Commands ---
    @bot.command(name="highlow", aliases=["hl"])
    async def highlow(ctx):
        """Start a High-Low match against the AI in this channel."""
        if not allowed_channel(ctx):
            await ctx.send("⚠️ Cannot use this command here.")
            return
        cid = ctx.channel.id
        async with lock_for(cid):
            if cid in bot.hl_tables:
                await ctx.send("⚠️ A match is already running here.")
                return
            match = Match(player_id=ctx.author.id, player_name=ctx.author.display_name)
            bot.hl_tables[cid] = match
            await ctx.send(
                f"🎲 {ctx.author.display_name} vs the AI — {config.STARTING_CREDITS} credits each.\n"
                "Pick cards with `!pick <slot> [√]` and `!op <+ - ÷ ×>`, then `!submit`."
            )
            await deal_round(ctx.channel, match)

    @bot.command(name="hand")
    async def hand(ctx):
        match = await table_for(ctx)
        if match:
            await ctx.send(render_hand(match))

    @bot.command(name="pick", aliases=["n"])
    async def pick(ctx, slot: int, root: str = ""):
        """Add number card <slot> to your expression; add √ to root it."""
        async with lock_for(ctx.channel.id):
            match = await table_for(ctx)
            if not match:
                return
            try:
                match.round.player.pick_number(slot - 1, root.strip().lower() in SQRT_WORDS)
            except ExpressionError as e:
                await ctx.send(f"⚠️ {e}")
                return
            await ctx.send(f"Expression: `{match.round.player.current.display_form()}`")

    @bot.command(name="op")
    async def op(ctx, symbol: str):
        """Add an operator to your expression."""
        async with lock_for(ctx.channel.id):
            match = await table_for(ctx)
            if not match:
                return
            try:
                match.round.player.pick_operator(OperatorType.from_symbol(symbol))
            except (ValueError, ExpressionError) as e:
                await ctx.send(f"⚠️ {e}")
                return
            await ctx.send(f"Expression: `{match.round.player.current.display_form()}`")

    @bot.command(name="reset")
    async def reset(ctx):
        async with lock_for(ctx.channel.id):
            match = await table_for(ctx)
            if not match:
                return
            match.round.player.reset()
            await ctx.send("🔄 Expression cleared.")

    @bot.command(name="target")
    async def target(ctx, value: int):
        """Choose the round's target (the AI re-plays for it)."""
        async with lock_for(ctx.channel.id):
            match = await table_for(ctx)
            if not match:
                return
            try:
                await asyncio.to_thread(match.round.set_target, value)
            except ValueError as e:
                await ctx.send(f"⚠️ {e}")
                return
            await ctx.send(f"🎯 Target set to **{match.round.target}**.")

    @bot.command(name="bet")
    async def bet(ctx, amount: int):
        async with lock_for(ctx.channel.id):
            match = await table_for(ctx)
            if not match:
                return
            placed = match.round.set_bet(amount)
            await ctx.send(f"💰 Bet set to **{placed}** (range {config.MIN_BET}–{config.MAX_BET}).")

    @bot.command(name="submit")
    async def submit(ctx):
        match = await table_for(ctx)
        if not match:
            return
        if not match.round.submit_available():
            wait = config.SUBMISSION_UNLOCK_TIME - match.round.elapsed()
            await ctx.send(f"⏳ Submitting unlocks in {wait:.0f}s.")
            return
        await finish_round(ctx.channel)

    @bot.command(name="quit")
    async def quit_match(ctx):
        async with lock_for(ctx.channel.id):
            match = bot.hl_tables.get(ctx.channel.id)
            if match is None or match.player_id != ctx.author.id:
                await ctx.send("⚠️ You have no match running here.")
                return
            del bot.hl_tables[ctx.channel.id]
        await ctx.send(f"🛑 Match abandoned after {match.rounds_played} rounds.")

    @bot.command(name="solve")
    async def solve_command(ctx, *, input_text: str):
        """
        Ask the AI for its best play on any hand.
        Usage: !solve <n1> ... <n6> <target> [mul=<k>] [sqrt=<k>] [off=<ops>]
        """
        options = {"mul": "0", "sqrt": "0", "off": ""}
        parts = []
        for token in input_text.split():
            if "=" in token:
                key, _, val = token.partition("=")
                if key.lower() not in options:
                    await ctx.send(f"⚠️ Unknown option `{key}`. Use mul=, sqrt= or off=.")
                    return
                options[key.lower()] = val
            else:
                parts.append(token)

        try:
            values = [int(p) for p in parts]
            multiply_budget = int(options["mul"])
            sqrt_budget = int(options["sqrt"])
            disabled = [OperatorType.from_symbol(ch) for ch in options["off"]]
        except ValueError:
            await ctx.send("⚠️ Numbers, target, mul and sqrt must be whole numbers; off= takes + - ÷.")
            return

        if len(values) < 2 or len(values) > MAX_SOLVE_NUMBERS + 1:
            await ctx.send(
                f"⚠️ Provide **between 1 and {MAX_SOLVE_NUMBERS} numbers** followed by **1 target**.\n"
                "Example: `!solve 4 9 5 sqrt=1`"
            )
            return
        *numbers, goal = values
        if not all(config.NUMBER_MIN <= n <= config.NUMBER_MAX for n in numbers):
            await ctx.send(f"⚠️ Cards only go from {config.NUMBER_MIN} to {config.NUMBER_MAX}.")
            return
        if multiply_budget < 0 or sqrt_budget < 0:
            await ctx.send("⚠️ mul and sqrt can't be negative.")
            return
        if multiply_budget > len(numbers) - 1 or sqrt_budget > len(numbers):
            await ctx.send(
                f"⚠️ {len(numbers)} numbers take at most **{len(numbers) - 1}** × "
                f"and **{len(numbers)}** √."
            )
            return

        try:
            solve_hand = Hand.from_values(numbers, multiply_budget, sqrt_budget, disabled)
        except ValueError as e:
            await ctx.send(f"⚠️ {e}")
            return

        outcome = await asyncio.to_thread(solve, solve_hand, goal, config.SOLVER_TIME_LIMIT)
        if not outcome.found:
            await ctx.send("⚠️ No legal expression can be built from that hand.")
            return
        note = "" if outcome.complete else "\n⏱️ Search was cut short; this is the best found in time."
        if outcome.distance == 0:
            msg = f"💡 A possible solution is: `{outcome.expression.display_form()}` = **{goal}**"
        else:
            msg = (f"💡 The closest is **{fmt(outcome.distance)}** away: "
                   f"`{outcome.expression.display_form()}` = **{fmt(outcome.value)}**")
        await ctx.send(msg + note)

    # --- Round clock: force-submit rounds that run out of time ---
    @tasks.loop(seconds=1)
    async def round_clock():
        for cid, match in list(bot.hl_tables.items()):
            if match.round is not None and match.round.expired():
                channel = bot.get_channel(cid)
                if channel is None:
                    del bot.hl_tables[cid]
                    continue
                task = asyncio.create_task(finish_round(channel, forced=True))
                bot.hl_tasks.add(task)
                task.add_done_callback(bot.hl_tasks.discard)

    # --- Expose for bot.py and tests ---
    bot.highlow_clock = round_clock
    bot.finish_highlow_round = finish_round

    print("✅ highlow_bot.py loaded successfully.")
