"""Shell completion scripts printed by ``pmd --completion SHELL``."""

from __future__ import annotations

PROG = "pmd"
SHELLS = ("bash", "zsh", "fish")

OPTIONS = (
    "-h --help -v --version -l --line-numbers -n --no-pager --light --dark "
    "-w --width -d --depth --theme --completion --init-config --debug-log"
)

BASH_TEMPLATE = """\
# {prog} bash completion
# Add this to your .bashrc or .bash_profile:
#   source <({prog} --completion bash)

_{prog}_completions() {{
    local cur prev opts
    COMPREPLY=()
    cur="${{COMP_WORDS[COMP_CWORD]}}"
    prev="${{COMP_WORDS[COMP_CWORD-1]}}"
    opts="{options}"

    case "${{prev}}" in
        --completion)
            COMPREPLY=( $(compgen -W "{shells}" -- "${{cur}}") )
            return 0
            ;;
        -w|--width|-d|--depth|--theme)
            return 0
            ;;
        --debug-log)
            COMPREPLY=( $(compgen -f -- "${{cur}}") )
            return 0
            ;;
    esac

    if [[ "${{cur}}" == -* ]]; then
        COMPREPLY=( $(compgen -W "${{opts}}" -- "${{cur}}") )
        return 0
    fi

    local IFS=$'\\n'
    local files=( $(compgen -f -X '!*.@(md|markdown|mdx)' -- "${{cur}}") )
    local dirs=( $(compgen -d -- "${{cur}}") )

    COMPREPLY=()
    for f in "${{files[@]}}"; do
        COMPREPLY+=( "$f" )
    done
    for d in "${{dirs[@]}}"; do
        COMPREPLY+=( "$d/" )
    done
    return 0
}}

shopt -s extglob
complete -o filenames -F _{prog}_completions {prog}
"""

ZSH_TEMPLATE = """\
#compdef {prog}
# {prog} zsh completion
# Add this to your .zshrc:
#   source <({prog} --completion zsh)
# Or save to a file in your $fpath

_{prog}() {{
    _arguments -s \\
        '(-h --help)'{{-h,--help}}'[Show help message]' \\
        '(-v --version)'{{-v,--version}}'[Show version]' \\
        '(-l --line-numbers)'{{-l,--line-numbers}}'[Show line numbers]' \\
        '(-n --no-pager)'{{-n,--no-pager}}'[Display without pager]' \\
        '--light[Force light mode]' \\
        '--dark[Force dark mode]' \\
        '(-w --width)'{{-w,--width}}'[Word-wrap at width]:width:' \\
        '(-d --depth)'{{-d,--depth}}'[Browser recursion depth]:depth:' \\
        '--theme[Theme name]:theme:' \\
        '--completion[Generate completion script]:shell:({shells})' \\
        '--init-config[Create default config file]' \\
        '--debug-log[Write debug log to file]:log file:_files' \\
        '*:markdown file or directory:_files -g "*(/) *.md *.markdown *.mdx"'
}}

compdef _{prog} {prog}
"""

FISH_TEMPLATE = """\
# {prog} fish completion
# Add this to your fish config:
#   {prog} --completion fish | source
# Or save to ~/.config/fish/completions/{prog}.fish

complete -c {prog} -s h -l help -d 'Show help message'
complete -c {prog} -s v -l version -d 'Show version'
complete -c {prog} -s l -l line-numbers -d 'Show line numbers'
complete -c {prog} -s n -l no-pager -d 'Display without pager'
complete -c {prog} -l light -d 'Force light mode'
complete -c {prog} -l dark -d 'Force dark mode'
complete -c {prog} -s w -l width -d 'Word-wrap at width' -x
complete -c {prog} -s d -l depth -d 'Browser recursion depth' -x
complete -c {prog} -l theme -d 'Theme name' -x
complete -c {prog} -l completion -d 'Generate completion script' -xa '{shells}'
complete -c {prog} -l init-config -d 'Create default config file'
complete -c {prog} -l debug-log -d 'Write debug log to file' -r
complete -c {prog} -f -a '(__fish_complete_suffix .md .markdown .mdx)'
"""

_TEMPLATES = {"bash": BASH_TEMPLATE, "zsh": ZSH_TEMPLATE, "fish": FISH_TEMPLATE}


def completion_script(shell: str) -> str | None:
    """Return the completion script for ``shell``, or ``None`` if unsupported."""
    template = _TEMPLATES.get(shell.lower())
    if template is None:
        return None
    return template.format(prog=PROG, options=OPTIONS, shells=" ".join(SHELLS))
