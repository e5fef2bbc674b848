# Example script for `uart-debug run-script examples/probe.py`
# or `:run examples/probe.py` inside the TUI.
#
# Scripts see exactly two host functions: new_window and write_wnd.

summary = new_window("probe")
write_wnd(summary, "starting probe\n")

squares = new_window("squares")
for i in range(10):
    write_wnd(squares, f"{i}^2 = {i * i}\n")

write_wnd(summary, "done\n")
