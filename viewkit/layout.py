"""Notebook widget tree shared by the scatter and map views.

Each view gets a title bar, a plot area, an inline message line and a
sidebar with a *Controls* section (dropdowns, slider, play button) and a
*Legend* section. Sidebar sections stay hidden until something is put in
them.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Optional

import ipywidgets as widgets
from IPython.display import display

_SECTION_LAYOUT = dict(
    width="100%",
    display="none",
    padding="8px",
    border="1px solid rgba(15,23,42,0.08)",
    border_radius="10px",
)


class OneShotOutput(widgets.Output):
    """An ``Output`` widget that refuses to be displayed twice.

    Displaying the same live widget in two cells leaves two frontends bound to
    one comm and makes it unclear which copy updates. The second display
    attempt raises ``RuntimeError`` instead; :meth:`reset_display_state`
    re-arms it.

    Examples
    --------
    >>> out = OneShotOutput()  # doctest: +SKIP
    >>> display(out)  # doctest: +SKIP
    >>> display(out)  # doctest: +SKIP
    RuntimeError: OneShotOutput has already been displayed...
    """

    __slots__ = ("_displayed",)

    def __init__(self) -> None:
        super().__init__()
        self._displayed = False

    def _repr_mimebundle_(self, include: Any = None, exclude: Any = None, **kwargs: Any) -> Any:
        if self._displayed:
            raise RuntimeError(
                "OneShotOutput has already been displayed. "
                "This widget supports only one-time display."
            )
        self._displayed = True
        return super()._repr_mimebundle_(include=include, exclude=exclude, **kwargs)

    @property
    def has_been_displayed(self) -> bool:
        return self._displayed

    def reset_display_state(self) -> None:
        """Allow the widget to be displayed again. Use with care."""
        self._displayed = False


class ViewLayout:
    """Widget hierarchy of one view.

    Parameters
    ----------
    title : str, optional
        Initial title shown above the plot.

    Notes
    -----
    The layout owns no plotting logic. Views place their plot widget with
    :meth:`set_plot_widget`, add controls with :meth:`set_controls` and
    report problems with :meth:`show_message`.
    """

    def __init__(self, title: str = "") -> None:
        self._reflow_callback: Optional[Callable[[], None]] = None

        self.title_html = widgets.HTML(value=title, layout=widgets.Layout(margin="0px"))
        self.full_width_checkbox = widgets.Checkbox(
            value=False,
            description="Full width plot",
            indent=False,
            layout=widgets.Layout(width="160px", margin="0px"),
        )
        self._titlebar = widgets.HBox(
            [self.title_html, self.full_width_checkbox],
            layout=widgets.Layout(
                width="100%",
                align_items="center",
                justify_content="space-between",
                margin="0 0 6px 0",
            ),
        )

        self.message_html = widgets.HTML(
            value="", layout=widgets.Layout(display="none", margin="0 0 6px 0")
        )
        self.plot_container = widgets.Box(
            children=(),
            layout=widgets.Layout(
                width="100%",
                min_width="320px",
                min_height="260px",
                margin="0px",
                padding="0px",
                flex="1 1 560px",
            ),
        )

        self.controls_header = widgets.HTML("<b>Controls</b>", layout=widgets.Layout(display="none", margin="0"))
        self.controls_box = widgets.VBox(layout=widgets.Layout(**_SECTION_LAYOUT))
        self.legend_header = widgets.HTML(
            "<b>Legend</b>", layout=widgets.Layout(display="none", margin="10px 0 0 0")
        )
        self.legend_box = widgets.VBox(layout=widgets.Layout(**_SECTION_LAYOUT))

        self.sidebar_container = widgets.VBox(
            [self.controls_header, self.controls_box, self.legend_header, self.legend_box],
            layout=widgets.Layout(
                margin="0px",
                padding="0px 0px 0px 10px",
                flex="0 1 320px",
                min_width="240px",
                max_width="360px",
                display="none",
            ),
        )

        self.left_panel = widgets.VBox(
            [self.message_html, self.plot_container],
            layout=widgets.Layout(width="100%", flex="1 1 560px", margin="0px", padding="0px"),
        )
        # flex-wrap drops the sidebar below the plot on narrow screens.
        self.content_wrapper = widgets.Box(
            [self.left_panel, self.sidebar_container],
            layout=widgets.Layout(
                display="flex",
                flex_flow="row wrap",
                align_items="flex-start",
                width="100%",
                gap="8px",
            ),
        )
        self.root_widget = widgets.VBox(
            [self._titlebar, self.content_wrapper],
            layout=widgets.Layout(width="100%", position="relative"),
        )

        self.full_width_checkbox.observe(self._on_full_width_change, names="value")

    @property
    def output_widget(self) -> OneShotOutput:
        """A display-ready :class:`OneShotOutput` wrapping the layout."""
        out = OneShotOutput()
        with out:
            display(self.root_widget)
        return out

    def show_message(self, text: Optional[str]) -> None:
        """Show an inline notice above the plot; ``None`` or ``""`` hides it."""
        if text:
            self.message_html.value = f"<span style='color:#b91c1c'>{text}</span>"
            self.message_html.layout.display = "block"
        else:
            self.message_html.value = ""
            self.message_html.layout.display = "none"

    def set_plot_widget(
        self, widget: widgets.Widget, *, reflow_callback: Optional[Callable[[], None]] = None
    ) -> None:
        self.plot_container.children = (widget,)
        self._reflow_callback = reflow_callback

    def set_controls(self, children: Sequence[widgets.Widget]) -> None:
        self.controls_box.children = tuple(children)
        self._sync_sidebar()

    def set_legend(self, children: Sequence[widgets.Widget]) -> None:
        self.legend_box.children = tuple(children)
        self._sync_sidebar()

    def _sync_sidebar(self) -> None:
        has_controls = bool(self.controls_box.children)
        has_legend = bool(self.legend_box.children)
        self.controls_header.layout.display = "block" if has_controls else "none"
        self.controls_box.layout.display = "flex" if has_controls else "none"
        self.legend_header.layout.display = "block" if has_legend else "none"
        self.legend_box.layout.display = "flex" if has_legend else "none"
        self.sidebar_container.layout.display = "flex" if (has_controls or has_legend) else "none"

    def _on_full_width_change(self, change: dict[str, Any]) -> None:
        is_full = change["new"]
        layout = self.content_wrapper.layout
        plot_layout = self.left_panel.layout
        sidebar_layout = self.sidebar_container.layout
        if is_full:
            layout.flex_flow = "column"
            plot_layout.flex = "0 0 auto"
            sidebar_layout.flex = "0 0 auto"
            sidebar_layout.max_width = ""
            sidebar_layout.width = "100%"
            sidebar_layout.padding = "0px"
        else:
            layout.flex_flow = "row wrap"
            plot_layout.flex = "1 1 560px"
            sidebar_layout.flex = "0 1 320px"
            sidebar_layout.max_width = "360px"
            sidebar_layout.width = "auto"
            sidebar_layout.padding = "0px 0px 0px 10px"
        if self._reflow_callback is not None:
            self._reflow_callback()
