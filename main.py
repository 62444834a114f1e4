import sys
import os
import time
import json
import logging
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.markdown import Markdown
from rich.prompt import Prompt

# Import Engine Components
from voyager.director import Director
from voyager.listener import Listener
from voyager.loader import ContentError, load_world
from voyager.narrator import Narrator, custom_theme
from voyager.session import SessionState

# --- CONFIGURATION ---
CONFIG_PATH = "config.yaml"
DEFAULT_CAMPAIGN_BASE_PATH = "data/campaigns"
DEFAULT_CAMPAIGN_ID = "stellar_voyager"
REPEAT_COMMANDS = ("again", "g")

load_dotenv()
console = Console(theme=custom_theme)
logger = logging.getLogger("voyager")


def setup_logging(debug=False):
    """Engine diagnostics go through RichHandler; narration never does."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True
    )


def clear_screen():
    os.system('cls' if os.name == 'nt' else 'clear')


def load_config():
    """
    Loads config.yaml or creates default if missing.
    """
    if not os.path.exists(CONFIG_PATH):
        default_yaml = f"""
# STELLAR VOYAGER CONFIGURATION
# -----------------------------
# campaign: directory name under the campaign base path
# (set VOYAGER_CAMPAIGN_PATH in .env to move the base path)

campaign: {DEFAULT_CAMPAIGN_ID}
debug_mode: false
show_suggestions: true
show_status: true
"""
        with open(CONFIG_PATH, "w") as f:
            f.write(default_yaml.strip() + "\n")

    with open(CONFIG_PATH, "r") as f:
        return yaml.safe_load(f) or {}


def campaign_path(config):
    base_path = os.getenv("VOYAGER_CAMPAIGN_PATH", DEFAULT_CAMPAIGN_BASE_PATH)
    return os.path.join(base_path, config.get('campaign', DEFAULT_CAMPAIGN_ID))


def save_path(config):
    return f"{config.get('campaign', DEFAULT_CAMPAIGN_ID)}.save"


def show_welcome_screen(config):
    clear_screen()

    welcome_md = Markdown("""
    # STELLAR VOYAGER

    A content-driven text adventure.

    > *Type short commands. Explore. Survive.*
    """)

    console.print(Panel(
        welcome_md,
        border_style="info",
        padding=(1, 2),
        width=60
    ))

    console.print("\n[dim]Select an option:[/dim]\n")

    debug_state = "On" if config.get('debug_mode', False) else "Off"
    menu_options = [
        ("1", f"Start New Campaign: {config.get('campaign', DEFAULT_CAMPAIGN_ID)}"),
        ("D", f"Toggle Debug Mode (current: {debug_state})"),
        ("2", "Load Saved Session"),
        ("3", "Quit")
    ]

    for key, label in menu_options:
        console.print(f" [[info]{key}[/info]] {label}")

    print()
    return Prompt.ask(" >", choices=["1", "2", "3", "D"], default="1")


# ============================================
# GAME LOOP
# ============================================
def start_game(config, resume=False):
    clear_screen()
    console.print(Panel("[info]LOADING CAMPAIGN...[/info]", border_style="info"))

    # 1. LOAD CAMPAIGN DATA (The "Campaign File" in memory)
    try:
        world = load_world(campaign_path(config))
    except FileNotFoundError as e:
        console.print(Panel(f"[warning]ERROR: Campaign data not found.[/] Missing file: {e}", border_style="warning"))
        time.sleep(3)
        return
    except yaml.YAMLError as e:
        console.print(Panel(f"[warning]YAML STRUCTURE ERROR:[/]\nCheck your campaign files for indentation or syntax errors.\nDetails: {e}", border_style="warning"))
        time.sleep(5)
        return
    except ContentError as e:
        console.print(Panel(f"[warning]CONTENT ERROR:[/]\n{e}", border_style="warning"))
        time.sleep(5)
        return

    # 2. INITIALIZE SESSION STATE (The "Save File" in memory)
    session = SessionState.for_world(world)
    if resume:
        if not load_session(session, config):
            time.sleep(1)
            return

    # 3. INITIALIZE ENGINE
    listener = Listener(world.commands)
    director = Director(world, session, listener)
    narrator = Narrator(console, listener, show_suggestions=config.get('show_suggestions', True))

    manifest = world.manifest
    console.print(Panel(
        f"[bold blue]{manifest.get('title', 'Unknown Campaign')}[/bold blue]\n\n"
        f"{manifest.get('intro_text', 'Your adventure begins...')}\n\n"
        "[dim]Type 'help' at any time to see available commands.[/dim]",
        title="CAMPAIGN STARTED",
        border_style="info"
    ))

    narrator.render(director.execute(listener.parse("look")))

    # 4. THE LOOP
    is_debug = config.get('debug_mode', False)
    while True:
        try:
            user_input = Prompt.ask("[info]>[/info]").strip()
        except (EOFError, KeyboardInterrupt):
            break

        if not user_input:
            continue

        # A. META COMMANDS (never reach the Director)
        lowered = user_input.lower()
        if lowered in REPEAT_COMMANDS:
            user_input = session.navigate_history(-1)
            session.history_index = -1
            if not user_input:
                console.print("[dim]Nothing to repeat.[/dim]")
                continue
            console.print(f"[dim]({user_input})[/dim]")
        elif lowered == "history":
            for index, past in enumerate(session.history[-10:], start=1):
                console.print(f"[dim]{index:>2}.[/dim] {past}")
            continue
        elif lowered == "save":
            save_session(session, config)
            continue
        elif lowered == "load":
            if load_session(session, config):
                narrator.render(director.execute(listener.parse("look")))
            continue

        session.add_to_history(user_input)

        # B. LISTENER PHASE
        intent = listener.parse(user_input)
        if is_debug:
            console.print(Panel(f"[dim]Intent ({user_input}):[/]\n{json.dumps(intent.to_dict(), indent=2)}", title="[DEBUG: Listener Output]", border_style="dim"))

        # C. DIRECTOR PHASE
        events = director.execute(intent)
        if is_debug:
            console.print(Panel(f"[dim]Events:[/]\n{json.dumps(events, indent=2)}", title="[DEBUG: Director Output]", border_style="dim"))

        # D. RENDER
        narrator.render(events)
        if config.get('show_status', True):
            narrator.render_status(world, session)

        if any(e.get('__end_session__') for e in events):
            break


def save_session(session, config):
    path = save_path(config)
    with open(path, "w") as f:
        json.dump(session.to_state(), f, indent=2)
    logger.info("Session saved to %s", path)
    console.print(f"[success]Saved to {path}.[/success]")


def load_session(session, config):
    path = save_path(config)
    try:
        with open(path, "r") as f:
            session.load_state(json.load(f))
    except FileNotFoundError:
        console.print("[dim]No saved session found.[/dim]")
        return False
    except (json.JSONDecodeError, KeyError) as e:
        console.print(Panel(f"[warning]Save file is unreadable:[/] {e}", border_style="warning"))
        return False
    console.print(f"[success]Loaded from {path}.[/success]")
    return True


# ============================================
# MAIN
# ============================================
def main():
    config = load_config()
    setup_logging(config.get('debug_mode', False))

    def toggle_debug(current_config):
        """Toggles the debug_mode flag in config.yaml."""
        current_config['debug_mode'] = not current_config.get('debug_mode', False)
        with open(CONFIG_PATH, "w") as f:
            yaml.dump(current_config, f, default_flow_style=False)
        setup_logging(current_config['debug_mode'])
        clear_screen()
        console.print(Panel(
            f"[info]DEBUG MODE:[/][bold]{' ON' if current_config['debug_mode'] else ' OFF'}[/bold]",
            border_style="info"
        ))
        time.sleep(1)

    while True:
        # Re-load config to get the latest debug state for the menu label
        config = load_config()
        choice = show_welcome_screen(config)

        if choice == "1":
            start_game(config)
        elif choice.upper() == "D":
            toggle_debug(config)
        elif choice == "2":
            start_game(config, resume=True)
        elif choice == "3":
            console.print("\nGoodbye.")
            sys.exit()


if __name__ == "__main__":
    main()
