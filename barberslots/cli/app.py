"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..adapters.rest_store import RestStore
from ..adapters.store import DataStore, InMemoryStore
from ..config import AppConfig, load_config
from ..domain.availability import AvailabilityEngine
from ..domain.exceptions import BarberSlotsError, ValidationError
from ..domain.models import (
    WEEKDAY_KEYS,
    EmployeeRole,
    TimeRange,
    WorkingHours,
    format_datetime,
    parse_datetime,
)
from ..services.booking import BookingService
from ..services.directory import DirectoryService
from ..services.reports import dashboard_stats, period_report

app = typer.Typer(
    name="barberslots",
    help="Horários disponíveis, agendamentos e relatórios da barbearia",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
SampleOption = Annotated[bool, typer.Option("--sample", help="Usar os dados de exemplo em memória.")]
YesOption = Annotated[bool, typer.Option("--yes", "-y", help="Não pedir confirmação.")]
SearchOption = Annotated[Optional[str], typer.Option("--search", "-s", help="Filtrar pelo termo informado")]
HoursOption = Annotated[
    Optional[List[str]],
    typer.Option("--hours", help="Expediente por dia, ex.: monday=09:00-18:00 ou sunday=off (repetível)"),
]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_store(config: AppConfig, sample: bool) -> DataStore:
    if sample or config.store.backend == "memory":
        return InMemoryStore.with_sample_data()
    return RestStore(
        base_url=config.store.url,
        api_key=config.store.api_key,
        timeout=config.store.timeout_seconds,
    )


def _build_service(config: AppConfig, sample: bool) -> BookingService:
    """Wire the configured store and engine into a booking service."""
    engine = AvailabilityEngine(policy=config.closure_policy())
    return BookingService(
        store=_build_store(config, sample),
        engine=engine,
        step_minutes=config.slot_step_minutes,
    )


def _parse_day(value: Optional[str], tz: str):
    """Parse a YYYY-MM-DD option, defaulting to today."""
    if not value:
        return pendulum.today(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Erro ao interpretar a data {value!r}: {e}[/red]")
        raise typer.Exit(1)


def _setup(config_file: Optional[Path], sample: bool):
    config = load_config(config_file)
    _configure_logging(config.log_level)
    return config, _build_service(config, sample)


def _setup_directory(config_file: Optional[Path], sample: bool) -> DirectoryService:
    config = load_config(config_file)
    _configure_logging(config.log_level)
    return DirectoryService(_build_store(config, sample))


def _changes(**options: Any) -> Dict[str, Any]:
    """Keep only the options the user actually passed."""
    return {key: value for key, value in options.items() if value is not None}


def _confirm_delete(label: str, yes: bool) -> None:
    if not yes:
        typer.confirm(f"Tem certeza que deseja excluir {label}?", abort=True)


def _parse_hours(values: List[str]) -> Dict[str, Optional[WorkingHours]]:
    """Parse ``monday=09:00-18:00`` or ``sunday=off`` options."""
    hours: Dict[str, Optional[WorkingHours]] = {}
    for value in values:
        day, sep, window = value.partition("=")
        day = day.strip().lower()
        if not sep or day not in WEEKDAY_KEYS:
            raise ValidationError(f"Invalid working hours {value!r}, expected e.g. monday=09:00-18:00")

        window = window.strip().lower()
        if window in ("off", "folga"):
            hours[day] = None
            continue

        start, sep, end = window.partition("-")
        if not sep:
            raise ValidationError(f"Invalid working hours {value!r}, expected e.g. monday=09:00-18:00")
        hours[day] = WorkingHours.from_strings(start, end)
    return hours


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Erro:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


@app.command()
def slots(
    employee: Annotated[str, typer.Argument(help="ID do profissional")],
    service: Annotated[str, typer.Argument(help="ID do serviço")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Data (YYYY-MM-DD), padrão: hoje")] = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    List the free start times of a professional for a service on one day.

    Examples:

        barberslots slots 1 3 --date 2024-11-25 --sample
    """
    try:
        config, booking = _setup(config_file, sample)
        day = _parse_day(date, config.timezone)

        staff = booking.get_employee(employee)
        offered = booking.get_service(service)
        hours = staff.hours_for(day)
        free = booking.available_slots(employee, service, day)

        console.print(
            f"\n[bold cyan]{staff.name}[/bold cyan] · {offered.name} ({offered.duration} min) · "
            f"{day.format('DD/MM/YYYY')}"
        )
        console.print(f"   Expediente: {hours if hours else 'folga'}\n")

        if not free:
            console.print("[yellow]⚠ Nenhum horário disponível.[/yellow]\n")
            return

        console.print(f"[bold green]✓ {len(free)} horário(s) disponível(is):[/bold green]")
        console.print("  " + "  ".join(slot.format("HH:mm") for slot in free))
        console.print()

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def check(
    employee: Annotated[str, typer.Argument(help="ID do profissional")],
    service: Annotated[str, typer.Argument(help="ID do serviço")],
    start: Annotated[str, typer.Argument(help="Início (YYYY-MM-DD HH:mm)")],
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Check whether a single start time is free.
    """
    try:
        config, booking = _setup(config_file, sample)
        start_dt = parse_datetime(start, config.timezone)

        if booking.is_available(employee, service, start_dt):
            console.print(f"[green]✓ {format_datetime(start_dt)} está disponível.[/green]")
        else:
            console.print(f"[yellow]✗ {format_datetime(start_dt)} não está disponível.[/yellow]")
            raise typer.Exit(2)

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def book(
    client: Annotated[str, typer.Argument(help="ID do cliente")],
    employee: Annotated[str, typer.Argument(help="ID do profissional")],
    service: Annotated[str, typer.Argument(help="ID do serviço")],
    start: Annotated[str, typer.Argument(help="Início (YYYY-MM-DD HH:mm)")],
    notes: Annotated[Optional[str], typer.Option("--notes", help="Observações")] = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Book an appointment after checking availability.
    """
    try:
        _, booking = _setup(config_file, sample)
        appointment = booking.book(client, employee, service, start, notes=notes)

        console.print(Panel.fit(
            f"[bold green]✓ Agendamento criado![/bold green]\n\n"
            f"[bold]ID:[/bold] {appointment.id}\n"
            f"[bold]Quando:[/bold] {appointment.format_display()}",
            title="Agendamento"
        ))

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def agenda(
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Data (YYYY-MM-DD), padrão: hoje")] = None,
    search: Annotated[Optional[str], typer.Option("--search", "-s", help="Filtrar por cliente, profissional ou serviço")] = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Show the appointments of one day.
    """
    try:
        config, booking = _setup(config_file, sample)
        day = _parse_day(date, config.timezone)
        entries = booking.appointments_for_day(day, search=search)

        if not entries:
            console.print("[yellow]Nenhum agendamento encontrado.[/yellow]")
            return

        table = Table(
            title=f"Agendamentos {day.format('DD/MM/YYYY')}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Horário", style="bold yellow")
        table.add_column("Cliente", no_wrap=True)
        table.add_column("Profissional")
        table.add_column("Serviço")
        table.add_column("Status", style="dim")

        for entry in entries:
            table.add_row(
                entry.appointment.start.format("HH:mm"),
                entry.client_name,
                entry.employee_name,
                entry.service_name,
                entry.appointment.status.value,
            )

        console.print()
        console.print(table)
        console.print()

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def report(
    start: Annotated[Optional[str], typer.Option("--start", help="Data inicial (YYYY-MM-DD), padrão: início do mês")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Data final (YYYY-MM-DD), padrão: hoje")] = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Business report for a period (both dates inclusive).
    """
    try:
        config, booking = _setup(config_file, sample)
        tz = config.timezone

        first_day = _parse_day(start, tz) if start else pendulum.today(tz).start_of("month").date()
        last_day = _parse_day(end, tz)
        period = TimeRange(
            start=pendulum.datetime(first_day.year, first_day.month, first_day.day, tz=tz),
            end=pendulum.datetime(last_day.year, last_day.month, last_day.day, tz=tz).add(days=1),
        )

        result = period_report(
            booking.list_appointments(),
            booking.list_services(),
            booking.list_employees(),
            period,
        )

        console.print(f"\n[bold cyan]📊 Relatório {first_day.format('DD/MM/YYYY')} - {last_day.format('DD/MM/YYYY')}[/bold cyan]")
        console.print(f"   Agendamentos: {result.total_appointments}")
        console.print(f"   Concluídos: {result.completed_appointments} ({result.completion_rate:.0%})")
        console.print(f"   Faturamento: R$ {result.total_revenue:.2f}\n")

        for title, lines in (
            ("Serviços", result.service_performance),
            ("Profissionais", result.employee_performance),
        ):
            table = Table(title=title, show_header=True, header_style="bold cyan")
            table.add_column("Nome", style="bold yellow")
            table.add_column("Atendimentos", justify="right")
            table.add_column("Faturamento", justify="right")
            for line in lines:
                table.add_row(line.name, str(line.count), f"R$ {line.revenue:.2f}")
            console.print(table)

        console.print()

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def dashboard(
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Data (YYYY-MM-DD), padrão: hoje")] = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Today's numbers at a glance.
    """
    try:
        config, booking = _setup(config_file, sample)
        day = _parse_day(date, config.timezone)

        stats = dashboard_stats(
            booking.list_appointments(),
            booking.list_clients(),
            booking.list_services(),
            day,
        )

        console.print(Panel.fit(
            f"[bold]Agendamentos hoje:[/bold] {stats.today_appointments}\n"
            f"[bold]Concluídos:[/bold] {stats.completed_today}\n"
            f"[bold]Total de clientes:[/bold] {stats.total_clients}\n"
            f"[bold]Faturamento diário:[/bold] R$ {stats.daily_revenue:.2f}\n"
            f"[bold]Serviços oferecidos:[/bold] {stats.services_offered}",
            title=f"Painel {day.format('DD/MM/YYYY')}"
        ))

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def clients(
    search: SearchOption = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    List clients, optionally filtered by name, e-mail or phone.
    """
    try:
        directory = _setup_directory(config_file, sample)
        found = directory.search_clients(search)

        if not found:
            console.print("[yellow]Nenhum cliente encontrado.[/yellow]")
            return

        table = Table(title="Clientes", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Nome", style="bold yellow", no_wrap=True)
        table.add_column("Telefone")
        table.add_column("E-mail")
        table.add_column("Última visita")

        for client in found:
            table.add_row(
                client.id,
                client.name,
                client.phone,
                client.email,
                client.last_visit.format("DD/MM/YYYY") if client.last_visit else "-",
            )

        console.print()
        console.print(table)
        console.print()

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("client-add")
def client_add(
    name: Annotated[str, typer.Argument(help="Nome do cliente")],
    phone: Annotated[str, typer.Option("--phone", help="Telefone")] = "",
    email: Annotated[str, typer.Option("--email", help="E-mail")] = "",
    notes: Annotated[Optional[str], typer.Option("--notes", help="Observações")] = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Register a new client.
    """
    try:
        directory = _setup_directory(config_file, sample)
        client = directory.create_client(name, phone=phone, email=email, notes=notes)
        console.print(f"[green]✓ Cliente {escape(client.name)} cadastrado (ID {client.id}).[/green]")

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("client-update")
def client_update(
    client_id: Annotated[str, typer.Argument(help="ID do cliente")],
    name: Annotated[Optional[str], typer.Option("--name", help="Nome")] = None,
    phone: Annotated[Optional[str], typer.Option("--phone", help="Telefone")] = None,
    email: Annotated[Optional[str], typer.Option("--email", help="E-mail")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Observações")] = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Edit a client's details.
    """
    try:
        changes = _changes(name=name, phone=phone, email=email, notes=notes)
        if not changes:
            console.print("[yellow]Nenhuma alteração informada.[/yellow]")
            return

        directory = _setup_directory(config_file, sample)
        client = directory.update_client(client_id, **changes)
        console.print(f"[green]✓ Cliente {escape(client.name)} atualizado.[/green]")

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("client-delete")
def client_delete(
    client_id: Annotated[str, typer.Argument(help="ID do cliente")],
    yes: YesOption = False,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Delete a client without appointments.
    """
    try:
        directory = _setup_directory(config_file, sample)
        client = directory.get_client(client_id)
        _confirm_delete(f"o cliente {client.name}", yes)
        directory.delete_client(client_id)
        console.print(f"[green]✓ Cliente {escape(client.name)} excluído.[/green]")

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def employees(
    search: SearchOption = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    List professionals and their weekly hours, optionally filtered.
    """
    try:
        directory = _setup_directory(config_file, sample)
        staff = directory.search_employees(search)

        if not staff:
            console.print("[yellow]Nenhum profissional encontrado.[/yellow]")
            return

        table = Table(
            title="Profissionais",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("ID", style="dim")
        table.add_column("Nome", style="bold yellow", no_wrap=True)
        table.add_column("Função")
        table.add_column("Horários")

        for employee in staff:
            hours = ", ".join(
                f"{day[:3]} {window}" for day, window in employee.working_hours.items() if window
            )
            table.add_row(employee.id, employee.name, employee.role.value, hours)

        console.print()
        console.print(table)
        console.print()

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("employee-add")
def employee_add(
    name: Annotated[str, typer.Argument(help="Nome do profissional")],
    phone: Annotated[str, typer.Option("--phone", help="Telefone")] = "",
    email: Annotated[str, typer.Option("--email", help="E-mail")] = "",
    role: Annotated[EmployeeRole, typer.Option("--role", help="Função")] = EmployeeRole.BARBER,
    hours: HoursOption = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Register a new professional.

    Examples:

        barberslots employee-add "Bruno Lima" --hours monday=09:00-18:00 --hours saturday=09:00-13:00
    """
    try:
        directory = _setup_directory(config_file, sample)
        employee = directory.create_employee(
            name,
            phone=phone,
            email=email,
            role=role,
            working_hours=_parse_hours(hours or []),
        )
        console.print(f"[green]✓ Profissional {escape(employee.name)} cadastrado (ID {employee.id}).[/green]")

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("employee-update")
def employee_update(
    employee_id: Annotated[str, typer.Argument(help="ID do profissional")],
    name: Annotated[Optional[str], typer.Option("--name", help="Nome")] = None,
    phone: Annotated[Optional[str], typer.Option("--phone", help="Telefone")] = None,
    email: Annotated[Optional[str], typer.Option("--email", help="E-mail")] = None,
    role: Annotated[Optional[EmployeeRole], typer.Option("--role", help="Função")] = None,
    hours: HoursOption = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Edit a professional. ``--hours`` only changes the weekdays it names.
    """
    try:
        directory = _setup_directory(config_file, sample)
        changes = _changes(name=name, phone=phone, email=email, role=role)
        if hours:
            current = directory.get_employee(employee_id)
            changes["working_hours"] = {**current.working_hours, **_parse_hours(hours)}
        if not changes:
            console.print("[yellow]Nenhuma alteração informada.[/yellow]")
            return

        employee = directory.update_employee(employee_id, **changes)
        console.print(f"[green]✓ Profissional {escape(employee.name)} atualizado.[/green]")

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("employee-delete")
def employee_delete(
    employee_id: Annotated[str, typer.Argument(help="ID do profissional")],
    yes: YesOption = False,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Delete a professional without appointments.
    """
    try:
        directory = _setup_directory(config_file, sample)
        employee = directory.get_employee(employee_id)
        _confirm_delete(f"o profissional {employee.name}", yes)
        directory.delete_employee(employee_id)
        console.print(f"[green]✓ Profissional {escape(employee.name)} excluído.[/green]")

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def services(
    search: SearchOption = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    List services, optionally filtered by name or description.
    """
    try:
        directory = _setup_directory(config_file, sample)
        offered = directory.search_services(search)

        if not offered:
            console.print("[yellow]Nenhum serviço encontrado.[/yellow]")
            return

        table = Table(title="Serviços", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Nome", style="bold yellow", no_wrap=True)
        table.add_column("Duração", justify="right")
        table.add_column("Preço", justify="right")
        table.add_column("Promoção", justify="right")

        for service in offered:
            promo = service.promotional
            table.add_row(
                service.id,
                service.name,
                f"{service.duration} min",
                f"R$ {service.price:.2f}",
                f"R$ {promo.discounted_price:.2f}" if promo and promo.is_active else "-",
            )

        console.print()
        console.print(table)
        console.print()

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("service-add")
def service_add(
    name: Annotated[str, typer.Argument(help="Nome do serviço")],
    duration: Annotated[int, typer.Option("--duration", help="Duração em minutos")],
    price: Annotated[float, typer.Option("--price", help="Preço")],
    description: Annotated[str, typer.Option("--description", help="Descrição")] = "",
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Register a new service.
    """
    try:
        directory = _setup_directory(config_file, sample)
        service = directory.create_service(name, duration=duration, price=price, description=description)
        console.print(f"[green]✓ Serviço {escape(service.name)} cadastrado (ID {service.id}).[/green]")

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("service-update")
def service_update(
    service_id: Annotated[str, typer.Argument(help="ID do serviço")],
    name: Annotated[Optional[str], typer.Option("--name", help="Nome")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", help="Duração em minutos")] = None,
    price: Annotated[Optional[float], typer.Option("--price", help="Preço")] = None,
    description: Annotated[Optional[str], typer.Option("--description", help="Descrição")] = None,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Edit a service.
    """
    try:
        changes = _changes(name=name, duration=duration, price=price, description=description)
        if not changes:
            console.print("[yellow]Nenhuma alteração informada.[/yellow]")
            return

        directory = _setup_directory(config_file, sample)
        service = directory.update_service(service_id, **changes)
        console.print(f"[green]✓ Serviço {escape(service.name)} atualizado.[/green]")

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("service-delete")
def service_delete(
    service_id: Annotated[str, typer.Argument(help="ID do serviço")],
    yes: YesOption = False,
    config_file: ConfigOption = None,
    sample: SampleOption = False,
):
    """
    Delete a service that no appointment uses.
    """
    try:
        directory = _setup_directory(config_file, sample)
        service = directory.get_service(service_id)
        _confirm_delete(f"o serviço {service.name}", yes)
        directory.delete_service(service_id)
        console.print(f"[green]✓ Serviço {escape(service.name)} excluído.[/green]")

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)



@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]barberslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
