import time


def render_status(context, width):
    """
    context keys: status_msg, status_until, mode, user, rows, visible,
                   selected, undo_depth, dirty
    """
    text = ""
    now = time.time()
    if context.get('status_msg') and now < context.get('status_until', 0):
        text = f" {context['status_msg']}"
    else:
        mode = context.get('mode', 'normal')
        if mode == 'cell_insert':
            label = 'SHEET:EDIT'
        elif mode == 'move':
            label = 'SHEET:MOVE'
        else:
            label = 'SHEET'
        user = context.get('user') or ''
        if context.get('dirty'):
            user = f"{user} [+]"
        rows = context.get('rows', 0)
        visible = context.get('visible', rows)
        selected = context.get('selected', 0)
        undo_depth = context.get('undo_depth', 0)
        shape = f"{visible}/{rows} rows"
        extras = f"sel {selected} | undo {undo_depth}"
        text = f" {label} | {user} | {shape} | {extras}"

    return text.ljust(width)[:width]
