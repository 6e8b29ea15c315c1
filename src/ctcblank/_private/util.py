import subprocess

def check_graphviz_installed():
    try:
        subprocess.run(["dot", "-V"], check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False

def format_weight(weight: float) -> str:
    """Shortest text for a weight that reads back to the same float."""
    if weight == float("inf"):
        return "Infinity"
    s = repr(float(weight))
    return s[:-2] if s.endswith(".0") else s
