from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from voyager.listener import Listener

custom_theme = Theme({
    "info": "bold #b0d8e3",       # Pale Cyan
    "text": "default",            # Adaptive
    "dim": "dim",                 # Grey
    "warning": "bold #ffafaf",    # Soft red
    "success": "bold #a3be8c",    # Soft green
    "error": "bold #bf616a",      # Red
    "speaker": "bold #ebcb8b",    # Amber
})

EVENT_STYLES = {
    "message": "text",
    "error": "error",
    "warning": "warning",
    "success": "success",
    "system": "info",
}


class Narrator:
    def __init__(self, console=None, listener=None, show_suggestions=True):
        """
        The Narrator is the PRESENTATION SINK.
        It takes the Director's events and renders them, in order, to a rich
        Console. It never talks back to the Director.
        """
        self.console = console or Console(theme=custom_theme)
        self.listener = listener or Listener()
        self.show_suggestions = show_suggestions

    def render(self, events):
        for event in events:
            self.render_event(event)

    def render_event(self, event):
        event_type = event.get('event_type')

        if event_type == 'room_description':
            self.console.print(self.room_panel(event))
            if self.show_suggestions:
                suggestions = self.listener.get_suggestions(event)
                self.console.print(Text("Try: " + ", ".join(suggestions), style="dim"))
        elif event_type == 'dialogue':
            line = Text()
            line.append(f"{event.get('speaker', '???')}: ", style="speaker")
            line.append(event.get('text', ""))
            self.console.print(line)
        elif event_type == 'system':
            self.console.print(Panel(Text(event.get('text', "")), border_style="info"))
        else:
            style = EVENT_STYLES.get(event_type, "text")
            self.console.print(Text(event.get('text', ""), style=style))

    def room_panel(self, event):
        lines = [Text(event.get('description', ""))]
        if event.get('items'):
            lines.append(Text(f"You can see: {', '.join(event['items'])}", style="info"))
        if event.get('characters'):
            lines.append(Text(f"Present here: {', '.join(event['characters'])}", style="info"))
        if event.get('exits'):
            lines.append(Text(f"Exits: {', '.join(event['exits'])}", style="dim"))
        return Panel(Group(*lines), title=Text(event.get('name', 'Somewhere'), style="bold"), border_style="info")

    # ==========================================
    # STATUS PANEL
    # ==========================================
    def render_status(self, world, session):
        self.console.print(self.status_table(world, session))

    def status_table(self, world, session):
        """Location, objective checklist and item count."""
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column(style="dim")
        table.add_column()

        room = world.get_room(session.current_room)
        table.add_row("Location", room.name if room else session.current_room)

        for objective in world.objectives:
            done = session.has_flag(objective.get('flag'))
            mark = "[success]☑[/success]" if done else "☐"
            table.add_row(mark, Text(objective.get('description', objective.get('flag', "")), style="dim" if done else "text"))

        table.add_row("Items", str(len(session.inventory)))
        return table
